"""Urbanesta listings backend: phone OTP login, users and leads."""

# Routers package
from . import auth_router
from . import two_factor_router
from . import user_router

__all__ = [
    "auth_router",
    "two_factor_router",
    "user_router",
]

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from ...application.ports.otp_gateway import OtpDelivery, OtpGateway
from ...config import settings
from ...exceptions import ConfigurationError, GatewayError

logger = logging.getLogger(__name__)

MIN_API_KEY_LENGTH = 10


@dataclass
class DeliveryStrategy:
    channel: str
    label: str
    template: str
    timeout: float


class TwoFactorGateway(OtpGateway):
    """Client for the 2Factor.in OTP API.

    Every endpoint is a GET whose JSON body carries ``Status`` ("Success" or
    "Error") and ``Details`` (the session id on success, a reason otherwise).
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 sms_template: Optional[str] = None, http=None):
        self._api_key = settings.TWO_FACTOR_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.TWO_FACTOR_BASE_URL).rstrip("/")
        self.http = http or requests
        self.strategies: List[DeliveryStrategy] = [
            DeliveryStrategy("sms", "SMS", sms_template or settings.TWO_FACTOR_SMS_TEMPLATE, settings.TWO_FACTOR_SMS_TIMEOUT),
            DeliveryStrategy("voice", "Voice", "VOICE", settings.TWO_FACTOR_VOICE_TIMEOUT),
        ]
        self.verify_timeout = settings.TWO_FACTOR_VERIFY_TIMEOUT

    def api_key(self) -> str:
        key = (self._api_key or "").strip()
        if not key:
            logger.error("2Factor API key not found in environment variables")
            raise ConfigurationError("OTP service is not configured")
        if len(key) < MIN_API_KEY_LENGTH:
            logger.error("2Factor API key appears to be invalid or too short")
            raise ConfigurationError("OTP service is misconfigured")
        return key

    def _call(self, path: str, timeout: float) -> dict:
        """GET ``path`` and return the decoded body, raising GatewayError on
        transport failures, timeouts and bodies that are not the expected JSON."""
        url = f"{self.base_url}/{self.api_key()}/{path}"
        try:
            response = self.http.get(url, timeout=timeout)
        except requests.Timeout:
            raise GatewayError(f"request timed out after {timeout:g}s")
        except requests.RequestException as e:
            raise GatewayError(f"network error: {e}")
        try:
            body = response.json()
        except ValueError:
            raise GatewayError(f"malformed response (HTTP {response.status_code})")
        if not isinstance(body, dict):
            raise GatewayError(f"malformed response (HTTP {response.status_code})")
        return body

    def _send(self, strategy: DeliveryStrategy, api_phone: str) -> OtpDelivery:
        body = self._call(f"SMS/{api_phone}/AUTOGEN/{strategy.template}", strategy.timeout)
        details = body.get("Details")
        if body.get("Status") != "Success":
            raise GatewayError(details or f"{strategy.channel} delivery failed")
        if not details:
            raise GatewayError("gateway returned no session id")
        return OtpDelivery(session_id=str(details), channel=strategy.channel)

    def request_code(self, api_phone: str) -> OtpDelivery:
        if not api_phone or not api_phone.isdigit():
            raise GatewayError("phone number must be digits with country code")
        failures = []
        for strategy in self.strategies:
            try:
                delivery = self._send(strategy, api_phone)
            except GatewayError as e:
                logger.warning(f"{strategy.channel} OTP failed for ...{api_phone[-4:]}: {e.detail}")
                failures.append(f"{strategy.label} error: {e.detail}")
                continue
            logger.info(f"{strategy.channel} OTP sent to ...{api_phone[-4:]}")
            return delivery
        logger.error(f"All OTP delivery channels failed for ...{api_phone[-4:]}")
        raise GatewayError("Unable to send OTP. " + ". ".join(failures))

    def verify_code(self, session_id: str, code: str) -> bool:
        """True when the gateway accepts the code, False when it rejects it.

        Not retried: a second verify call against a consumed code would fail
        even when the first one succeeded upstream."""
        body = self._call(f"SMS/VERIFY/{session_id}/{code}", self.verify_timeout)
        if body.get("Status") == "Success":
            return True
        logger.info(f"OTP rejected by gateway for session {session_id}: {body.get('Details')}")
        return False

    def get_balance(self) -> str:
        body = self._call("BAL/TRANSACTION", self.verify_timeout)
        if body.get("Status") != "Success":
            raise GatewayError(body.get("Details") or "Failed to get balance")
        return str(body.get("Details"))

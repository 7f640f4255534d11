from dataclasses import dataclass
from typing import Protocol


@dataclass
class OtpDelivery:
    session_id: str
    channel: str


class OtpGateway(Protocol):
    def request_code(self, api_phone: str) -> OtpDelivery:
        ...

    def verify_code(self, session_id: str, code: str) -> bool:
        ...

    def get_balance(self) -> str:
        ...

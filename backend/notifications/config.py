from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SmsConfig:
    account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    from_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    base_url: str = "https://api.twilio.com/2010-04-01"
    timeout: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)


DEFAULT_SMS_CONFIG = SmsConfig()

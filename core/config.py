# core/config.py

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


class Settings:
    def __init__(self):
        # ==========================================================
        # ✅ APPLICATION
        # ==========================================================
        self.app_name = os.getenv("APP_NAME", "Passo")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # ==========================================================
        # ✅ DATABASE
        # ==========================================================
        self.database_url = os.getenv("DATABASE_URL", "mysql+asyncmy://root:@localhost:3306/passo")
        self.sql_echo = _env_bool("SQL_ECHO")

        # ==========================================================
        # ✅ AUTHENTICATION
        # ==========================================================
        self.bcrypt_rounds = _env_int("BCRYPT_ROUNDS", 12)
        self.otp_length = _env_int("OTP_LENGTH", 4)
        self.incomplete_registration_ttl_hours = _env_int("INCOMPLETE_REGISTRATION_TTL_HOURS", 24)

        # ==========================================================
        # ✅ SMS
        # ==========================================================
        self.sms_provider = os.getenv("SMS_PROVIDER", "console").strip().lower()
        self.sms_gateway_url = os.getenv("SMS_GATEWAY_URL", "")
        self.sms_gateway_api_key = os.getenv("SMS_GATEWAY_API_KEY", "")
        self.sms_sender_id = os.getenv("SMS_SENDER_ID", "PASSO")
        self.sms_timeout_seconds = _env_int("SMS_TIMEOUT_SECONDS", 30)
        self.sms_max_retries = _env_int("SMS_MAX_RETRIES", 3)

        # ==========================================================
        # ✅ SALES
        # ==========================================================
        self.sales_decrement_stock = _env_bool("SALES_DECREMENT_STOCK")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = None):
    logging.basicConfig(level=level or get_settings().log_level, format=LOG_FORMAT)

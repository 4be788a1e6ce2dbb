import logging

from sms.base import SmsProvider, SmsResult

logger = logging.getLogger(__name__)


class ConsoleSmsProvider(SmsProvider):
    """Development provider: nothing leaves the process."""

    name = "console"

    def __init__(self, settings=None):
        self.settings = settings

    def send(self, number: str, message: str) -> SmsResult:
        logger.info("📨 SMS to %s (%d chars) written to console provider", number, len(message))
        return SmsResult(success=True, provider=self.name)

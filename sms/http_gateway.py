"""
http_gateway.py
------------------------------------
SMS delivery through a JSON HTTP gateway.
------------------------------------
POSTs {sender_id, to, message} with a bearer API key. Connection errors and
429/5xx responses are retried a bounded number of times with backoff.
"""

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sms.base import SmsProvider, SmsResult

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 160
SUCCESS_STATUSES = ("success", "sent", "ok")
RETRY_STATUSES = (429, 500, 502, 503, 504)


class HttpSmsProvider(SmsProvider):
    name = "http"

    def __init__(self, settings):
        self.url = settings.sms_gateway_url
        self.api_key = settings.sms_gateway_api_key
        self.sender_id = settings.sms_sender_id
        self.timeout = settings.sms_timeout_seconds
        self.session = self._build_session(settings.sms_max_retries)

    @staticmethod
    def _build_session(max_retries: int) -> requests.Session:
        retry = Retry(
            total=max_retries,
            connect=max_retries,
            read=max_retries,
            status=max_retries,
            backoff_factor=0.5,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=frozenset({"POST"}),
            raise_on_status=False,
        )
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _validate(self, number: str, message: str):
        if not number:
            raise ValueError("Phone number cannot be empty")
        if not message or not message.strip():
            raise ValueError("Message cannot be empty")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters (current: {len(message)})")
        if not self.url or not self.api_key:
            raise ValueError("SMS gateway credentials not configured")

    def send(self, number: str, message: str) -> SmsResult:
        try:
            self._validate(number, message)
        except ValueError as e:
            logger.error("SMS to %s rejected before sending: %s", number, e)
            return SmsResult(success=False, provider=self.name, error=str(e))

        payload = {"sender_id": self.sender_id, "to": number, "message": message}
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("SMS gateway request to %s failed: %s", number, e)
            return SmsResult(success=False, provider=self.name, error=f"Gateway request failed: {e}")

        if not response.ok:
            logger.error("SMS gateway returned HTTP %s for %s", response.status_code, number)
            return SmsResult(
                success=False,
                provider=self.name,
                error=f"Gateway request failed with status: {response.status_code}",
            )

        try:
            body = response.json()
        except ValueError:
            body = {}

        status = str(body.get("status") or body.get("Status") or "").lower()
        if status not in SUCCESS_STATUSES:
            error = body.get("message") or body.get("Message") or "Unknown error from SMS gateway"
            logger.error("SMS gateway refused message to %s: %s", number, error)
            return SmsResult(success=False, provider=self.name, error=error, data=body)

        logger.info("SMS sent to %s via gateway", number)
        return SmsResult(success=True, provider=self.name, data=body)

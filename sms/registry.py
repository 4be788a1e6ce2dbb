from fastapi import Request

from sms.base import SmsProvider
from sms.console import ConsoleSmsProvider
from sms.http_gateway import HttpSmsProvider

SMS_PROVIDERS = {
    "console": ConsoleSmsProvider,
    "http": HttpSmsProvider,
}


def build_sms_provider(settings) -> SmsProvider:
    try:
        provider_class = SMS_PROVIDERS[settings.sms_provider]
    except KeyError:
        raise ValueError(
            f"Unsupported SMS provider: {settings.sms_provider!r} "
            f"(available: {', '.join(sorted(SMS_PROVIDERS))})"
        ) from None
    return provider_class(settings)


def get_sms_provider(request: Request) -> SmsProvider:
    """FastAPI dependency returning the provider resolved at startup."""
    return request.app.state.sms

from dataclasses import dataclass


@dataclass(frozen=True)
class PhoneNumber:
    """A subscriber number together with its country calling code.

    Both parts are stored and matched separately; ``e164`` is only for
    display and SMS delivery.
    """

    country_code: str
    phone: str

    @property
    def e164(self) -> str:
        return f"+{self.country_code}{self.phone}"

    def __str__(self) -> str:
        return self.e164

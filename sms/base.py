from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class SmsResult:
    success: bool
    provider: str
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class SmsProvider(ABC):
    """Sends a single text message. Delivery failures are reported, never raised."""

    name = "base"

    @abstractmethod
    def send(self, number: str, message: str) -> SmsResult:
        raise NotImplementedError

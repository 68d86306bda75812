"""
pokebridge exception types
"""
from typing import Optional


class BridgeError(Exception):
    """Base class for every error raised by pokebridge."""


class ParseFailure(BridgeError):
    """Raised when a mapping artifact or an external payload cannot be parsed."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class ExternalServiceUnavailable(BridgeError):
    """Raised when a catalog API cannot be reached or answers with an error."""

    def __init__(
        self, service: str, message: str, status_code: Optional[int] = None
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"[{service}] {message}")


class CardNotFoundError(BridgeError):
    """Raised when a card id exists in neither the store nor its origin catalog."""

    def __init__(self, card_id: str) -> None:
        self.card_id = card_id
        super().__init__(f"Card not found: {card_id}")

from __future__ import annotations


class ShopLogError(Exception):
    """
    Base for errors that are reported to the caller as `Error: <message>`.
    """

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingFieldError(ShopLogError):
    default_message = "Missing required data"

    def __init__(self, message: str | None = None, *, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class MalformedPayloadError(ShopLogError):
    default_message = "Invalid items data"


class StorageError(ShopLogError):
    default_message = "Storage failure"


class ConcurrentModificationError(StorageError):
    default_message = "Row changed while it was being updated"

class ShortenerError(Exception):
    """Base class for errors raised by the shortener core."""


class InvalidURLError(ShortenerError, ValueError):
    """The submitted string is not an absolute http(s) URL we accept."""


class UnknownCodeError(ShortenerError, KeyError):
    """No mapping exists for the short code."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    def __str__(self):
        return f"unknown short code: {self.code}"


class StorageError(ShortenerError):
    """The backing store failed (I/O, transaction, lock)."""


class CodeCollisionError(StorageError):
    """Every candidate short code was already taken."""

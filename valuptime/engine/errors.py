"""Exceptions raised by the uptime engine and its stores."""

from __future__ import annotations


class UptimeError(Exception):
    """Base class for uptime computation failures."""


class InvalidRangeError(UptimeError, ValueError):
    """Block range or upgrade window bounds are unusable."""

    def __init__(self, message: str, *, start_block: int | None = None, end_block: int | None = None):
        self.start_block = start_block
        self.end_block = end_block
        super().__init__(f"{message} (start_block={start_block}, end_block={end_block})")


class DataAccessError(UptimeError):
    """A block source or validator registry could not be reached or read.

    Always fatal for the current run. The underlying cause is chained via
    ``raise DataAccessError(...) from exc``.
    """

    def __init__(
        self,
        message: str,
        *,
        start_block: int | None = None,
        end_block: int | None = None,
        validator_id: str | None = None,
    ):
        self.start_block = start_block
        self.end_block = end_block
        self.validator_id = validator_id
        self.message = message
        context = [f"start_block={start_block}", f"end_block={end_block}"]
        if validator_id is not None:
            context.append(f"validator_id={validator_id}")
        super().__init__(f"{message} ({', '.join(context)})")


class ConfigError(UptimeError):
    """Missing or invalid run configuration."""


__all__ = ["ConfigError", "DataAccessError", "InvalidRangeError", "UptimeError"]

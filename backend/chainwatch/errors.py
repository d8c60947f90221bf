"""Exceptions shared by the fetch layer, the scanners and the broadcaster."""

from __future__ import annotations


class FetchError(RuntimeError):
    """A read from an external chain source failed and can be retried next tick."""

    def __init__(self, source: str, query: str, message: str) -> None:
        super().__init__(f"{source} {query}: {message}")
        self.source = source
        self.query = query
        self.message = message


class ObserverDeliveryError(RuntimeError):
    """A message could not be queued for a connected observer."""


__all__ = ["FetchError", "ObserverDeliveryError"]

"""Client for a mempool.space compatible Bitcoin REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from chainwatch.errors import FetchError

LOGGER = logging.getLogger(__name__)

SOURCE = "bitcoin"


@dataclass(frozen=True)
class RawMempoolItem:
    """One entry of ``/mempool/recent``; amounts are in satoshi."""

    txid: str
    value_sats: int
    fee_sats: int
    vsize: int


def _as_non_negative_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    number = int(value)
    if number < 0:
        raise ValueError(f"Negative amount: {value!r}")
    return number


class MempoolClient:
    """Blocking REST client; network and payload problems raise ``FetchError``."""

    source = SOURCE

    def __init__(
        self,
        api_base: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, path: str) -> requests.Response:
        url = f"{self.api_base}{path}"
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(SOURCE, f"GET {path}", f"request failed: {exc}") from exc
        return response

    def _get_json(self, path: str) -> Any:
        response = self._get(path)
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(SOURCE, f"GET {path}", "response is not valid JSON") from exc

    def fetch_recent(self) -> List[RawMempoolItem]:
        """Return the indexer's window of recently seen mempool transactions in source order."""
        payload = self._get_json("/mempool/recent")
        if not isinstance(payload, list):
            raise FetchError(SOURCE, "GET /mempool/recent", f"expected a list, got {type(payload).__name__}")

        items: List[RawMempoolItem] = []
        for entry in payload:
            try:
                txid = entry.get("txid")
                if not txid:
                    LOGGER.debug("Skipping mempool entry without txid: %s", entry)
                    continue
                items.append(
                    RawMempoolItem(
                        txid=str(txid),
                        value_sats=_as_non_negative_int(entry.get("value")),
                        fee_sats=_as_non_negative_int(entry.get("fee")),
                        vsize=_as_non_negative_int(entry.get("vsize")),
                    )
                )
            except (AttributeError, TypeError, ValueError) as exc:
                LOGGER.warning("Skipping malformed mempool entry: %s", exc)
                continue

        return items

    def get_tip_height(self) -> int:
        response = self._get("/blocks/tip/height")
        try:
            return int(response.text.strip())
        except ValueError as exc:
            raise FetchError(SOURCE, "GET /blocks/tip/height", f"invalid height {response.text!r}") from exc

    def get_mempool_summary(self) -> Dict[str, int]:
        """Return ``count`` and ``vsize`` of the whole mempool."""
        payload = self._get_json("/mempool")
        if not isinstance(payload, dict):
            raise FetchError(SOURCE, "GET /mempool", "expected an object")
        try:
            return {
                "count": _as_non_negative_int(payload.get("count")),
                "vsize": _as_non_negative_int(payload.get("vsize")),
            }
        except (TypeError, ValueError) as exc:
            raise FetchError(SOURCE, "GET /mempool", f"malformed summary: {exc}") from exc


__all__ = ["MempoolClient", "RawMempoolItem"]

"""CometBFT RPC client: just enough to tell whether a node is producing blocks."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class CometRpc:
    """Synchronous client for one node's RPC endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> CometRpc:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def status(self) -> dict[str, Any]:
        """``GET /status`` result payload.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx response.
        """
        response = self._client.get("/status")
        response.raise_for_status()
        body = response.json()
        # Older nodes wrap the payload in a JSON-RPC envelope.
        return body.get("result", body)

    def latest_height(self) -> int | None:
        """Latest committed block height, or ``None`` while the node is unreachable."""
        try:
            status = self.status()
        except httpx.HTTPError as exc:
            logger.debug("RPC %s not ready: %s", self.base_url, exc)
            return None
        except ValueError:
            logger.debug("RPC %s returned a non-JSON status", self.base_url)
            return None
        try:
            return int(status["sync_info"]["latest_block_height"])
        except (KeyError, TypeError, ValueError):
            return None

"""Tests for the CometBFT RPC client."""

import httpx
import pytest

from empower_e2e.infrastructure.rpc import CometRpc


def _rpc(handler) -> CometRpc:
    return CometRpc("http://127.0.0.1:26600", transport=httpx.MockTransport(handler))


def _status(height: str) -> dict:
    return {
        "node_info": {"network": "empowerchain-e2e"},
        "sync_info": {"latest_block_height": height},
    }


class TestCometRpc:
    def test_status_unwraps_jsonrpc_envelope(self) -> None:
        body = {"jsonrpc": "2.0", "id": -1, "result": _status("7")}
        rpc = _rpc(lambda request: httpx.Response(200, json=body))
        assert rpc.status()["sync_info"]["latest_block_height"] == "7"

    def test_latest_height(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json=_status("12"))

        with _rpc(handler) as rpc:
            assert rpc.latest_height() == 12
        assert seen == ["/status"]

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(503, text="starting"),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"result": {"sync_info": {}}}),
        ],
    )
    def test_not_ready_is_none(self, response: httpx.Response) -> None:
        assert _rpc(lambda request: response).latest_height() is None

    def test_connection_refused_is_none(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert _rpc(refuse).latest_height() is None

    def test_status_raises_on_http_error(self) -> None:
        rpc = _rpc(lambda request: httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            rpc.status()

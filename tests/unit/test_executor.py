"""
Tests for request execution and outcome classification.
"""

import json
from unittest.mock import Mock

import pytest

from rpc_bench.catalog import MethodSpec
from rpc_bench.executor import RequestExecutor, classify_response, log_failed_call
from rpc_bench.transport import TransportResponse
from tests.fixtures import rpc_error, rpc_ok

GAS = MethodSpec("getReferenceGasPrice", "suix_getReferenceGasPrice", list)


class TestClassifyResponse:
    """Test the success rule: HTTP 200, valid JSON, no error key"""

    def test_success(self):
        assert classify_response(TransportResponse(200, rpc_ok("1000"), 12.0)) is None

    def test_missing_result_still_success(self):
        body = json.dumps({"jsonrpc": "2.0", "id": 1})
        assert classify_response(TransportResponse(200, body, 1.0)) is None

    def test_non_200(self):
        assert "500" in classify_response(TransportResponse(500, rpc_ok(), 1.0))

    def test_rpc_error(self):
        reason = classify_response(TransportResponse(200, rpc_error(message="bad params"), 1.0))
        assert reason.startswith("rpc error")
        assert "bad params" in reason

    def test_null_error_field_is_failure(self):
        body = json.dumps({"jsonrpc": "2.0", "id": 1, "error": None})
        assert classify_response(TransportResponse(200, body, 1.0)) is not None

    def test_malformed_json(self):
        assert classify_response(TransportResponse(200, "<html>oops", 1.0)) == "unparseable response body"

    @pytest.mark.parametrize("body", ["[1, 2]", "\"0x1\"", "123", "true"])
    def test_non_object_json_without_error_is_success(self, body):
        assert classify_response(TransportResponse(200, body, 1.0)) is None

    def test_null_body_is_failure(self):
        assert classify_response(TransportResponse(200, "null", 1.0)) == "null response body"

    def test_transport_failure(self):
        assert classify_response(TransportResponse(0, "connection refused", 3.0)) is not None


class TestRequestExecutor:
    """Test RequestExecutor against the fake transport"""

    @pytest.mark.asyncio
    async def test_sends_json_rpc_envelope(self, fake_transport, candidate, catalog):
        executor = RequestExecutor(fake_transport)

        await executor.execute(candidate, catalog[0])

        url, request, headers = fake_transport.requests[0]
        assert url == candidate.url
        assert headers["Content-Type"] == "application/json"
        assert request["jsonrpc"] == "2.0"
        assert request["id"] == 1
        assert request["method"] == "sui_multiGetObjects"
        assert len(request["params"][0]) == 5

    @pytest.mark.asyncio
    async def test_successful_call(self, fake_transport, candidate):
        fake_transport.respond(candidate.url, duration_ms=42.5)
        sink = Mock()
        executor = RequestExecutor(fake_transport, diagnostic_sink=sink)

        result = await executor.execute(candidate, GAS)

        assert result.success is True
        assert result.http_status == 200
        assert result.duration_ms == 42.5
        assert result.backend == candidate
        assert result.method == GAS
        assert result.error is None
        sink.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error_reported_to_sink(self, fake_transport, candidate):
        fake_transport.respond(candidate.url, status=500, body="internal error", duration_ms=80.0)
        sink = Mock()
        executor = RequestExecutor(fake_transport, diagnostic_sink=sink)

        result = await executor.execute(candidate, GAS)

        assert result.success is False
        assert result.http_status == 500
        assert result.duration_ms == 80.0
        sink.assert_called_once_with(GAS, candidate, 500, "internal error")

    @pytest.mark.asyncio
    async def test_rpc_error_is_failure(self, fake_transport, baselines):
        fake_transport.respond(baselines[0].url, body=rpc_error())
        sink = Mock()
        executor = RequestExecutor(fake_transport, diagnostic_sink=sink)

        result = await executor.execute(baselines[0], GAS)

        assert result.success is False
        assert result.http_status == 200
        assert sink.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_failure_is_failed_sample(self, fake_transport, candidate):
        fake_transport.respond(candidate.url, status=0, body="ClientConnectorError", duration_ms=3.0)
        executor = RequestExecutor(fake_transport, diagnostic_sink=Mock())

        result = await executor.execute(candidate, GAS)

        assert result.success is False
        assert result.http_status == 0
        assert result.duration_ms == 3.0

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, fake_transport, candidate):
        fake_transport.respond(candidate.url, status=503, body="")
        executor = RequestExecutor(fake_transport, diagnostic_sink=Mock())

        await executor.execute(candidate, GAS)

        assert len(fake_transport.requests) == 1


def test_log_failed_call_truncates_body(candidate, monkeypatch):
    logger = Mock()
    monkeypatch.setattr("rpc_bench.executor.logger", logger)

    log_failed_call(GAS, candidate, 502, "x" * 2000)

    event, = logger.warning.call_args.args
    fields = logger.warning.call_args.kwargs
    assert event == "rpc_call_failed"
    assert fields["method"] == "suix_getReferenceGasPrice"
    assert fields["endpoint"] == candidate.url
    assert fields["status"] == 502
    assert len(fields["body"]) < 600

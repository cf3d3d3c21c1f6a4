"""
Request execution

Sends one JSON-RPC call to a backend, measures it and classifies the outcome.
Per-call failures never raise; they are returned as unsuccessful results and
reported to the diagnostic sink.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog
from prometheus_client import Counter, Histogram

from .catalog import MethodSpec, build_envelope
from .config import Backend
from .transport import Transport, TransportResponse

logger = structlog.get_logger(__name__)

rpc_requests_total = Counter(
    'rpc_bench_requests_total', 'JSON-RPC calls issued', ['endpoint_class', 'method', 'outcome']
)
rpc_request_duration = Histogram(
    'rpc_bench_request_duration_seconds', 'JSON-RPC call latency', ['endpoint_class', 'method']
)

JSON_HEADERS = {"Content-Type": "application/json"}
MAX_LOGGED_BODY = 512

DiagnosticSink = Callable[[MethodSpec, Backend, int, str], None]


@dataclass(frozen=True)
class CallResult:
    backend: Backend
    method: MethodSpec
    duration_ms: float
    http_status: int
    success: bool
    error: Optional[str] = None


def log_failed_call(method: MethodSpec, backend: Backend, status: int, body: str):
    """Default diagnostic sink: one warning line per failed call"""
    if len(body) > MAX_LOGGED_BODY:
        body = body[:MAX_LOGGED_BODY] + "..."
    logger.warning("rpc_call_failed",
                   method=method.rpc_method,
                   endpoint=backend.url,
                   endpoint_class=backend.backend_class.value,
                   status=status,
                   body=body)


def classify_response(response: TransportResponse) -> Optional[str]:
    """
    Check a transport response for success.

    Returns:
        None when the call succeeded, otherwise a short reason
    """
    if response.status != 200:
        return f"http status {response.status}"

    try:
        payload: Any = json.loads(response.body)
    except ValueError:
        return "unparseable response body"

    if payload is None:
        return "null response body"
    if isinstance(payload, dict) and "error" in payload:
        return f"rpc error: {json.dumps(payload['error'])}"
    return None


class RequestExecutor:
    """Performs single JSON-RPC calls through a transport"""

    def __init__(self, transport: Transport, diagnostic_sink: Optional[DiagnosticSink] = None):
        self.transport = transport
        self.diagnostic_sink = diagnostic_sink or log_failed_call

    async def execute(self, backend: Backend, method: MethodSpec) -> CallResult:
        """Issue one call and return its classified result"""
        payload = json.dumps(build_envelope(method))

        response = await self.transport.post(backend.url, payload, dict(JSON_HEADERS))
        error = classify_response(response)
        success = error is None

        endpoint_class = backend.backend_class.value
        rpc_request_duration.labels(endpoint_class=endpoint_class, method=method.name).observe(
            response.duration_ms / 1000.0
        )
        rpc_requests_total.labels(
            endpoint_class=endpoint_class,
            method=method.name,
            outcome="success" if success else "failure",
        ).inc()

        if not success:
            self.diagnostic_sink(method, backend, response.status, response.body)

        return CallResult(
            backend=backend,
            method=method,
            duration_ms=response.duration_ms,
            http_status=response.status,
            success=success,
            error=error,
        )

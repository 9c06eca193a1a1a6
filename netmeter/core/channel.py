"""Request/response call boundary in front of the advisor.

Every call resolves to exactly one of three outcomes: a success value, an
error with a code and message, or "not implemented" for method names outside
the supported set. Probe failures never surface as "not implemented" and
unknown methods never surface as ``platform_error``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from netmeter.core.advisor import NetworkAdvisor
from netmeter.core.constants import (
    CHANNEL_NAME,
    ERROR_INVALID_REQUEST,
    ERROR_PLATFORM,
    METHOD_GET_NETWORK_CLASSIFICATION,
    METHOD_IS_ACTIVE_NETWORK_METERED,
    STATUS_ERROR,
    STATUS_NOT_IMPLEMENTED,
    STATUS_SUCCESS,
)
from netmeter.core.probe import ProbeUnavailable

logger = logging.getLogger(__name__)


class MethodNotImplemented(LookupError):
    """Raised when a call names a method the channel does not support."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Method {method!r} is not implemented on {CHANNEL_NAME}")
        self.method = method


@dataclass(frozen=True)
class MethodCall:
    """A single call arriving at the boundary."""

    method: str
    arguments: Any = None
    call_id: Any = None


@dataclass(frozen=True)
class MethodResult:
    """Outcome of a call: success, error, or not implemented."""

    status: str
    value: Any = None
    code: Optional[str] = None
    message: Optional[str] = None
    details: Any = None
    call_id: Any = None

    @classmethod
    def success(cls, value: Any, call_id: Any = None) -> "MethodResult":
        return cls(status=STATUS_SUCCESS, value=value, call_id=call_id)

    @classmethod
    def error(
        cls,
        code: str,
        message: Optional[str],
        details: Any = None,
        call_id: Any = None,
    ) -> "MethodResult":
        return cls(status=STATUS_ERROR, code=code, message=message, details=details, call_id=call_id)

    @classmethod
    def not_implemented(cls, call_id: Any = None) -> "MethodResult":
        return cls(status=STATUS_NOT_IMPLEMENTED, call_id=call_id)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.call_id, "status": self.status}
        if self.status == STATUS_SUCCESS:
            payload["result"] = self.value
        elif self.status == STATUS_ERROR:
            payload["error"] = {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        return payload


class NetworkChannel:
    """Dispatches boundary calls to a :class:`NetworkAdvisor`."""

    def __init__(self, advisor: NetworkAdvisor) -> None:
        self.advisor = advisor
        self._handlers: Dict[str, Callable[[Any], Any]] = {
            METHOD_IS_ACTIVE_NETWORK_METERED: self._is_active_network_metered,
            METHOD_GET_NETWORK_CLASSIFICATION: self._get_network_classification,
        }

    @property
    def methods(self) -> Iterable[str]:
        return tuple(self._handlers)

    def _is_active_network_metered(self, arguments: Any) -> bool:
        del arguments
        return self.advisor.query_metered_status().metered

    def _get_network_classification(self, arguments: Any) -> Dict[str, Any]:
        del arguments
        return self.advisor.query_metered_status().to_dict()

    def invoke(self, method: str, arguments: Any = None) -> Any:
        """Call a method in-process, raising on failure."""
        handler = self._handlers.get(method)
        if handler is None:
            raise MethodNotImplemented(method)
        return handler(arguments)

    def handle(self, call: MethodCall) -> MethodResult:
        """Call a method and fold the outcome into a :class:`MethodResult`."""
        try:
            value = self.invoke(call.method, call.arguments)
        except MethodNotImplemented:
            logger.debug("Rejected unknown method %r", call.method)
            return MethodResult.not_implemented(call_id=call.call_id)
        except ProbeUnavailable as exc:
            return MethodResult.error(ERROR_PLATFORM, str(exc), call_id=call.call_id)
        return MethodResult.success(value, call_id=call.call_id)


def decode_call(line: str) -> MethodCall:
    """Decode one JSON request line. Raises ``ValueError`` when malformed."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Request is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Request must be a JSON object")
    method = payload.get("method")
    if not isinstance(method, str) or not method:
        raise ValueError("Request is missing a 'method' string")
    return MethodCall(method=method, arguments=payload.get("arguments"), call_id=payload.get("id"))


def encode_result(result: MethodResult) -> str:
    return json.dumps(result.to_dict(), separators=(",", ":"))


def _request_id(line: str) -> Any:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return None
    return payload.get("id") if isinstance(payload, dict) else None


def serve_lines(channel: NetworkChannel, lines: Iterable[str]) -> Iterator[str]:
    """Answer a stream of JSON request lines with JSON response lines."""
    for line in lines:
        if not line.strip():
            continue
        try:
            call = decode_call(line)
        except ValueError as exc:
            result = MethodResult.error(ERROR_INVALID_REQUEST, str(exc), call_id=_request_id(line))
        else:
            result = channel.handle(call)
        yield encode_result(result)

"""HTTP connectivity check."""

from __future__ import annotations

import time

import requests

from netmeter.core.constants import DEFAULT_CHECK_URL
from netmeter.core.models import ReachabilityResult


class ReachabilityChecker:
    """Single-shot check against a "generate 204" style endpoint.

    A network error is an answer (unreachable), not a failure. Any status
    other than the expected one means something answered on the endpoint's
    behalf, usually a captive portal.
    """

    def __init__(
        self,
        url: str = DEFAULT_CHECK_URL,
        expected_status: int = 204,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.url = url
        self.expected_status = expected_status
        self.timeout_seconds = timeout_seconds

    def check(self) -> ReachabilityResult:
        started = time.monotonic()
        try:
            response = requests.get(self.url, timeout=self.timeout_seconds, allow_redirects=False)
        except requests.RequestException as exc:
            return ReachabilityResult(url=self.url, reachable=False, error=str(exc))

        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        if response.status_code != self.expected_status:
            return ReachabilityResult(
                url=self.url,
                reachable=False,
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
                captive_portal=True,
            )
        return ReachabilityResult(
            url=self.url,
            reachable=True,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
        )

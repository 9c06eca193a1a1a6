"""Network metering advisor."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from netmeter.core.models import NetworkClassification, ProbeReading
from netmeter.core.probe import ConnectivityProbe, ProbeUnavailable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[NetworkClassification], None]
ErrorCallback = Callable[[ProbeUnavailable], None]


def classify_reading(reading: ProbeReading) -> NetworkClassification:
    """Map a raw probe reading into a classification.

    No network is reported as metered, and so is a connected network whose
    metered state the platform could not determine.
    """
    return NetworkClassification.of(
        connected=reading.connected,
        metered=reading.metered,
        transport=reading.transport,
        interface=reading.interface,
    )


class NetworkAdvisor:
    """Answers whether network-costly work should proceed right now."""

    def __init__(self, probe: ConnectivityProbe) -> None:
        self.probe = probe

    def query_metered_status(self) -> NetworkClassification:
        """Probe the platform once and classify the active network."""
        try:
            reading = self.probe.read()
        except ProbeUnavailable:
            raise
        except Exception as exc:
            raise ProbeUnavailable(f"{self.probe.name} probe failed: {exc}") from exc

        classification = classify_reading(reading)
        logger.debug("Probe %s reported %s", self.probe.name, classification)
        return classification

    def is_active_network_metered(self) -> bool:
        return self.query_metered_status().metered

    def subscribe(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
        interval_seconds: float = 5.0,
        emit_initial: bool = True,
    ) -> "Subscription":
        """Start delivering classification changes to ``on_change``."""
        subscription = Subscription(
            advisor=self,
            on_change=on_change,
            on_error=on_error,
            interval_seconds=interval_seconds,
            emit_initial=emit_initial,
        )
        subscription.start()
        return subscription


class Subscription:
    """Background delivery of classification changes.

    The probe's push notifications wake the refresh loop early; without them
    the loop polls every ``interval_seconds``. Delivery and cancellation share
    one re-entrant lock, so nothing is delivered once ``cancel`` returns and a
    callback may cancel its own subscription.
    """

    def __init__(
        self,
        advisor: NetworkAdvisor,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
        interval_seconds: float = 5.0,
        emit_initial: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        self._advisor = advisor
        self._on_change = on_change
        self._on_error = on_error
        self._interval_seconds = interval_seconds
        self._emit_initial = emit_initial

        self._lock = threading.RLock()
        self._wake = threading.Event()
        self._stopped = threading.Event()
        self._active = False
        self._primed = False
        self._last: Optional[NetworkClassification] = None
        self._thread: Optional[threading.Thread] = None
        self._unregister: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def last(self) -> Optional[NetworkClassification]:
        """Most recently delivered (or primed) classification."""
        with self._lock:
            return self._last

    def start(self) -> None:
        with self._lock:
            if self._active or self._stopped.is_set():
                return
            self._active = True

        try:
            unregister = self._advisor.probe.watch(self.notify)
        except ProbeUnavailable as exc:
            logger.warning("Change notifications unavailable, polling instead: %s", exc)
            unregister = None

        with self._lock:
            self._unregister = unregister
        self._thread = threading.Thread(target=self._run, name="netmeter-subscription", daemon=True)
        self._thread.start()

    def notify(self) -> None:
        """Signal that the platform reported a network transition."""
        self._wake.set()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self._wake.clear()
            self.refresh()
            self._wake.wait(self._interval_seconds)

    def refresh(self) -> Optional[NetworkClassification]:
        """Query once and deliver the result if it changed.

        Returns the delivered classification, or ``None`` when nothing was
        delivered.
        """
        try:
            snapshot = self._advisor.query_metered_status()
        except ProbeUnavailable as exc:
            with self._lock:
                if not self._active:
                    return None
                if self._on_error is not None:
                    self._on_error(exc)
                else:
                    logger.warning("Network probe unavailable: %s", exc)
            return None

        with self._lock:
            if not self._active:
                return None
            if not self._primed:
                self._primed = True
                self._last = snapshot
                if not self._emit_initial:
                    return None
            elif snapshot == self._last:
                return None
            self._last = snapshot
            self._on_change(snapshot)
        return snapshot

    def cancel(self) -> None:
        """Stop delivery and release the probe registration. Idempotent."""
        with self._lock:
            if not self._active:
                self._stopped.set()
                return
            self._active = False
            unregister, self._unregister = self._unregister, None

        self._stopped.set()
        self._wake.set()
        if unregister is not None:
            unregister()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval_seconds + 1.0)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

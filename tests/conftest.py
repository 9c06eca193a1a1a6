from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest
from typer.testing import CliRunner

from netmeter.core.models import ProbeReading, Transport
from netmeter.core.probe import ConnectivityProbe, ProbeUnavailable


class FakeProbe(ConnectivityProbe):
    """Scriptable probe: set ``reading`` or ``error`` and call ``push()``."""

    name = "fake"

    def __init__(self, reading: Optional[ProbeReading] = None, supports_watch: bool = True) -> None:
        self.reading = reading or ProbeReading(connected=True, metered=False, transport=Transport.WIFI, interface="wlan0")
        self.error: Optional[Exception] = None
        self.reads = 0
        self.supports_watch = supports_watch
        self.unregistered = 0
        self._notify: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()

    def read(self) -> ProbeReading:
        with self._lock:
            self.reads += 1
            if self.error is not None:
                raise self.error
            return self.reading

    def set(self, reading: ProbeReading) -> None:
        with self._lock:
            self.reading = reading
            self.error = None

    def fail(self, error: Exception) -> None:
        with self._lock:
            self.error = error

    def watch(self, notify: Callable[[], None]) -> Optional[Callable[[], None]]:
        if not self.supports_watch:
            return None
        self._notify = notify

        def _unregister() -> None:
            self.unregistered += 1
            self._notify = None

        return _unregister

    @property
    def registered(self) -> bool:
        return self._notify is not None

    def push(self) -> None:
        if self._notify is not None:
            self._notify()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def unavailable() -> ProbeUnavailable:
    return ProbeUnavailable("permission denied")


@pytest.fixture()
def write_state_file(tmp_path: Path):
    def _write(payload: Dict[str, Any], name: str = "network-state.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write


@pytest.fixture()
def state_cli(tmp_path: Path, write_state_file, monkeypatch: pytest.MonkeyPatch):
    """Point the CLI at a file probe and return a writer for its state."""
    config_path = tmp_path / "config.toml"
    monkeypatch.setenv("NETMETER_CONFIG_FILE", str(config_path))
    monkeypatch.setenv("NETMETER_PROBE", "file")
    state_path = tmp_path / "network-state.json"
    monkeypatch.setenv("NETMETER_STATE_FILE", str(state_path))

    def _write(payload: Dict[str, Any]) -> Path:
        return write_state_file(payload)

    return _write



@pytest.fixture()
def wifi_reading() -> ProbeReading:
    return ProbeReading(connected=True, metered=False, transport=Transport.WIFI, interface="wlan0")


@pytest.fixture()
def cellular_reading() -> ProbeReading:
    return ProbeReading(connected=True, metered=True, transport=Transport.CELLULAR, interface="wwan0")


@pytest.fixture()
def offline_reading() -> ProbeReading:
    return ProbeReading(connected=False)


@pytest.fixture()
def make_probe():
    def _make(reading: Optional[ProbeReading] = None, supports_watch: bool = True) -> FakeProbe:
        return FakeProbe(reading=reading, supports_watch=supports_watch)

    return _make

"""Platform connectivity probes.

A probe answers one question: what is the active network right now, and
does the platform consider it metered. Probes report raw readings; the fail-safe
mapping into a classification happens in the advisor.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from netmeter.core.config import resolve_probe_backend, resolve_state_file
from netmeter.core.constants import NM_METERED_MAP, NM_SKIPPED_DEVICE_TYPES, NM_TRANSPORT_MAP
from netmeter.core.models import ProbeReading, Transport
from netmeter.utils.parsing import (
    load_state_document,
    parse_optional_bool,
    parse_terse_fields,
    parse_terse_rows,
)

logger = logging.getLogger(__name__)


class ProbeUnavailable(RuntimeError):
    """Raised when the platform connectivity service cannot be queried."""


class ConnectivityProbe:
    """Base class for platform connectivity probes."""

    name = "base"

    def read(self) -> ProbeReading:
        """Return the current active-network reading."""
        raise NotImplementedError

    def watch(self, notify: Callable[[], None]) -> Optional[Callable[[], None]]:
        """Register for change notifications.

        Returns an unregister callable, or ``None`` when this probe cannot
        push events and the caller has to poll.
        """
        del notify
        return None


class NmcliProbe(ConnectivityProbe):
    """Probe backed by NetworkManager's ``nmcli`` tool."""

    name = "nmcli"

    def __init__(self, nmcli_path: str = "nmcli", timeout_seconds: float = 5.0) -> None:
        self.nmcli_path = nmcli_path
        self.timeout_seconds = timeout_seconds

    def _run(self, *args: str) -> str:
        command = [self.nmcli_path, *args]
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ProbeUnavailable(
                f"{self.nmcli_path} not found; is NetworkManager installed?"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ProbeUnavailable(
                f"{' '.join(command)} timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise ProbeUnavailable(f"Failed to run {self.nmcli_path}: {exc}") from exc

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            raise ProbeUnavailable(f"{' '.join(command)} failed: {detail}")
        return result.stdout

    @staticmethod
    def _active_device(rows: List[List[str]]) -> Optional[Tuple[str, str]]:
        external: Optional[Tuple[str, str]] = None
        for row in rows:
            if len(row) < 3:
                continue
            device, device_type, state = row[0], row[1].lower(), row[2].lower()
            if device_type in NM_SKIPPED_DEVICE_TYPES:
                continue
            if state == "connected":
                return device, device_type
            if state.startswith("connected (") and external is None:
                external = (device, device_type)
        return external

    def read(self) -> ProbeReading:
        rows = parse_terse_rows(self._run("-t", "-f", "DEVICE,TYPE,STATE", "device", "status"))
        active = self._active_device(rows)
        if active is None:
            logger.debug("nmcli reports no connected device")
            return ProbeReading(connected=False)

        device, device_type = active
        fields = parse_terse_fields(
            self._run("-t", "-f", "GENERAL.METERED", "device", "show", device)
        )
        raw_metered = fields.get("GENERAL.METERED", "unknown").strip().lower()
        if raw_metered not in NM_METERED_MAP:
            logger.debug("Unrecognized GENERAL.METERED value %r for %s", raw_metered, device)
        metered = NM_METERED_MAP.get(raw_metered)

        return ProbeReading(
            connected=True,
            metered=metered,
            transport=Transport.parse(NM_TRANSPORT_MAP.get(device_type)),
            interface=device,
        )

    def watch(self, notify: Callable[[], None]) -> Optional[Callable[[], None]]:
        try:
            process = subprocess.Popen(
                [self.nmcli_path, "monitor"],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except OSError as exc:
            raise ProbeUnavailable(f"Failed to start {self.nmcli_path} monitor: {exc}") from exc

        def _pump() -> None:
            if process.stdout is None:
                return
            for line in process.stdout:
                if line.strip():
                    notify()

        reader = threading.Thread(target=_pump, name="netmeter-nmcli-monitor", daemon=True)
        reader.start()

        def _unregister() -> None:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=self.timeout_seconds)
                except subprocess.TimeoutExpired:
                    process.kill()
                    process.wait()
            reader.join(timeout=self.timeout_seconds)

        return _unregister


class FileProbe(ConnectivityProbe):
    """Probe reading a JSON/YAML network state document.

    Used on hosts without NetworkManager, where another agent exports the
    network state to disk.
    """

    name = "file"

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> ProbeReading:
        try:
            doc = load_state_document(self.path)
        except FileNotFoundError as exc:
            raise ProbeUnavailable(f"State file {self.path} does not exist") from exc
        except (OSError, ValueError) as exc:
            raise ProbeUnavailable(f"Failed to read state file {self.path}: {exc}") from exc

        return self._reading_from_document(doc)

    def _reading_from_document(self, doc: Dict[str, Any]) -> ProbeReading:
        try:
            connected = parse_optional_bool(doc.get("connected"))
            metered = parse_optional_bool(doc.get("metered"))
        except ValueError as exc:
            raise ProbeUnavailable(f"Invalid state file {self.path}: {exc}") from exc

        if connected is None:
            raise ProbeUnavailable(f"State file {self.path} does not say whether a network is connected")

        interface = doc.get("interface")
        return ProbeReading(
            connected=connected,
            metered=metered,
            transport=Transport.parse(doc.get("transport")),
            interface=str(interface) if interface else None,
        )


def build_probe(config: Dict[str, Any], backend: Optional[str] = None) -> ConnectivityProbe:
    """Create the configured probe."""
    selected = resolve_probe_backend(config, explicit=backend)
    probe_cfg = config.get("probe", {})
    if selected == "file":
        return FileProbe(resolve_state_file(config))
    return NmcliProbe(
        nmcli_path=str(probe_cfg.get("nmcli_path") or "nmcli"),
        timeout_seconds=float(probe_cfg.get("timeout_seconds", 5)),
    )

"""Lightweight data models shared by the advisor, probes and commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Transport(str, Enum):
    """Link type of the active network."""

    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    VPN = "vpn"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Transport":
        """Coerce a raw transport name, falling back to UNKNOWN."""
        if isinstance(value, Transport):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ProbeReading:
    """Raw active-network state as reported by a platform probe.

    ``metered`` is ``None`` when the platform could not tell.
    """

    connected: bool
    metered: Optional[bool] = None
    transport: Transport = Transport.UNKNOWN
    interface: Optional[str] = None


@dataclass(frozen=True)
class NetworkClassification:
    """Immutable snapshot of the active network's cost characteristics."""

    connected: bool
    metered: bool
    transport: Transport = Transport.UNKNOWN
    interface: Optional[str] = None

    @classmethod
    def of(
        cls,
        connected: bool,
        metered: Optional[bool],
        transport: Any = Transport.UNKNOWN,
        interface: Optional[str] = None,
    ) -> "NetworkClassification":
        """Build a snapshot, applying the fail-safe metered rules."""
        if not connected:
            return cls(connected=False, metered=True, transport=Transport.UNKNOWN, interface=None)
        return cls(
            connected=True,
            metered=True if metered is None else bool(metered),
            transport=Transport.parse(transport),
            interface=interface,
        )

    @property
    def unmetered(self) -> bool:
        """True when costly transfers may proceed."""
        return self.connected and not self.metered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "metered": self.metered,
            "transport": self.transport.value,
            "interface": self.interface,
        }


DISCONNECTED = NetworkClassification.of(connected=False, metered=True)


@dataclass(frozen=True)
class ReachabilityResult:
    """Outcome of a single HTTP connectivity check."""

    url: str
    reachable: bool
    status_code: Optional[int] = None
    elapsed_ms: Optional[float] = None
    captive_portal: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "reachable": self.reachable,
            "status_code": self.status_code,
            "elapsed_ms": self.elapsed_ms,
            "captive_portal": self.captive_portal,
            "error": self.error,
        }

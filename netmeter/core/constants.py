"""Static constants and mappings for netmeter."""

from __future__ import annotations

CHANNEL_NAME = "netmeter/network"

METHOD_IS_ACTIVE_NETWORK_METERED = "isActiveNetworkMetered"
METHOD_GET_NETWORK_CLASSIFICATION = "getNetworkClassification"

ERROR_PLATFORM = "platform_error"
ERROR_INVALID_REQUEST = "invalid_request"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_NOT_IMPLEMENTED = "not_implemented"

PROBE_BACKENDS = ("nmcli", "file")

DEFAULT_CHECK_URL = "http://connectivitycheck.gstatic.com/generate_204"

# NetworkManager device types (nmcli TYPE column) -> transport value
NM_TRANSPORT_MAP = {
    "wifi": "wifi",
    "ethernet": "ethernet",
    "gsm": "cellular",
    "cdma": "cellular",
    "modem": "cellular",
    "wireguard": "vpn",
    "vpn": "vpn",
    "tun": "vpn",
}

# GENERAL.METERED values; "unknown" maps to None
NM_METERED_MAP = {
    "yes": True,
    "yes (guessed)": True,
    "no": False,
    "no (guessed)": False,
    "unknown": None,
}

# Devices that never carry the default route
NM_SKIPPED_DEVICE_TYPES = {"loopback", "bridge", "veth", "dummy", "wifi-p2p"}

TRANSPORT_LABELS = {
    "wifi": "Wi-Fi",
    "cellular": "Cellular",
    "ethernet": "Ethernet",
    "vpn": "VPN",
    "unknown": "Unknown",
}

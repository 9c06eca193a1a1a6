from __future__ import annotations

import pytest

from netmeter.core.advisor import NetworkAdvisor, classify_reading
from netmeter.core.models import NetworkClassification, ProbeReading, Transport
from netmeter.core.probe import ProbeUnavailable


def test_classify_reading_wifi_unmetered(wifi_reading: ProbeReading) -> None:
    assert classify_reading(wifi_reading) == NetworkClassification(
        connected=True,
        metered=False,
        transport=Transport.WIFI,
        interface="wlan0",
    )


def test_classify_reading_offline_is_metered() -> None:
    snapshot = classify_reading(ProbeReading(connected=False, metered=False, transport=Transport.WIFI))
    assert snapshot.connected is False
    assert snapshot.metered is True


def test_query_wifi_unmetered(make_probe, wifi_reading: ProbeReading) -> None:
    advisor = NetworkAdvisor(make_probe(wifi_reading))
    snapshot = advisor.query_metered_status()
    assert (snapshot.connected, snapshot.metered) == (True, False)


def test_query_cellular_is_metered(make_probe, cellular_reading: ProbeReading) -> None:
    advisor = NetworkAdvisor(make_probe(cellular_reading))
    snapshot = advisor.query_metered_status()
    assert (snapshot.connected, snapshot.metered) == (True, True)
    assert snapshot.transport is Transport.CELLULAR


def test_query_airplane_mode(make_probe, offline_reading: ProbeReading) -> None:
    advisor = NetworkAdvisor(make_probe(offline_reading))
    snapshot = advisor.query_metered_status()
    assert (snapshot.connected, snapshot.metered) == (False, True)


def test_query_probes_exactly_once_per_call(fake_probe) -> None:
    advisor = NetworkAdvisor(fake_probe)
    advisor.query_metered_status()
    assert fake_probe.reads == 1
    advisor.is_active_network_metered()
    assert fake_probe.reads == 2


def test_query_twice_without_change_is_identical(fake_probe) -> None:
    advisor = NetworkAdvisor(fake_probe)
    assert advisor.query_metered_status() == advisor.query_metered_status()


def test_query_reflects_changes_between_calls(fake_probe, cellular_reading: ProbeReading) -> None:
    advisor = NetworkAdvisor(fake_probe)
    assert advisor.is_active_network_metered() is False
    fake_probe.set(cellular_reading)
    assert advisor.is_active_network_metered() is True


def test_probe_unavailable_propagates(fake_probe, unavailable: ProbeUnavailable) -> None:
    fake_probe.fail(unavailable)
    advisor = NetworkAdvisor(fake_probe)
    with pytest.raises(ProbeUnavailable) as excinfo:
        advisor.query_metered_status()
    assert excinfo.value is unavailable


def test_unexpected_probe_error_is_wrapped(fake_probe) -> None:
    fake_probe.fail(PermissionError("denied"))
    advisor = NetworkAdvisor(fake_probe)
    with pytest.raises(ProbeUnavailable, match="denied") as excinfo:
        advisor.query_metered_status()
    assert isinstance(excinfo.value.__cause__, PermissionError)

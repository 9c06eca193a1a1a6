from __future__ import annotations

import json

import pytest

from netmeter.core.advisor import NetworkAdvisor
from netmeter.core.channel import (
    MethodCall,
    MethodNotImplemented,
    MethodResult,
    NetworkChannel,
    decode_call,
    encode_result,
    serve_lines,
)
from netmeter.core.probe import ProbeUnavailable


@pytest.fixture()
def channel(fake_probe) -> NetworkChannel:
    return NetworkChannel(NetworkAdvisor(fake_probe))


def test_is_active_network_metered_success(channel: NetworkChannel) -> None:
    result = channel.handle(MethodCall(method="isActiveNetworkMetered"))
    assert result.ok
    assert result.value is False
    assert result.to_dict() == {"id": None, "status": "success", "result": False}


def test_is_active_network_metered_offline(channel: NetworkChannel, fake_probe, offline_reading) -> None:
    fake_probe.set(offline_reading)
    assert channel.handle(MethodCall(method="isActiveNetworkMetered")).value is True


def test_get_network_classification(channel: NetworkChannel) -> None:
    result = channel.handle(MethodCall(method="getNetworkClassification", call_id=7))
    assert result.call_id == 7
    assert result.value == {
        "connected": True,
        "metered": False,
        "transport": "wifi",
        "interface": "wlan0",
    }


def test_probe_failure_is_platform_error(channel: NetworkChannel, fake_probe) -> None:
    fake_probe.fail(ProbeUnavailable("connectivity service missing"))
    result = channel.handle(MethodCall(method="isActiveNetworkMetered"))
    assert result.status == "error"
    assert result.code == "platform_error"
    assert result.message == "connectivity service missing"
    assert result.value is None


def test_unknown_method_is_not_implemented(channel: NetworkChannel, fake_probe) -> None:
    result = channel.handle(MethodCall(method="isActiveNetworkFast"))
    assert result.status == "not_implemented"
    assert result.code is None
    assert result.to_dict() == {"id": None, "status": "not_implemented"}
    assert fake_probe.reads == 0


def test_unknown_method_not_implemented_even_when_probe_fails(channel: NetworkChannel, fake_probe) -> None:
    fake_probe.fail(ProbeUnavailable("down"))
    assert channel.handle(MethodCall(method="nope")).status == "not_implemented"


def test_invoke_raises_typed_errors(channel: NetworkChannel, fake_probe) -> None:
    assert channel.invoke("isActiveNetworkMetered") is False
    with pytest.raises(MethodNotImplemented) as excinfo:
        channel.invoke("isActiveNetworkFast")
    assert excinfo.value.method == "isActiveNetworkFast"

    fake_probe.fail(ProbeUnavailable("down"))
    with pytest.raises(ProbeUnavailable):
        channel.invoke("isActiveNetworkMetered")


def test_methods_is_closed_set(channel: NetworkChannel) -> None:
    assert set(channel.methods) == {"isActiveNetworkMetered", "getNetworkClassification"}


def test_decode_call_reads_envelope() -> None:
    call = decode_call('{"id": "a1", "method": "isActiveNetworkMetered", "arguments": null}')
    assert call == MethodCall(method="isActiveNetworkMetered", arguments=None, call_id="a1")


@pytest.mark.parametrize("line", ["not json", "[1, 2]", '{"id": 1}', '{"method": ""}'])
def test_decode_call_rejects_malformed(line: str) -> None:
    with pytest.raises(ValueError):
        decode_call(line)


def test_encode_error_result() -> None:
    encoded = encode_result(MethodResult.error("platform_error", "boom", call_id=3))
    assert json.loads(encoded) == {
        "id": 3,
        "status": "error",
        "error": {"code": "platform_error", "message": "boom", "details": None},
    }


def test_serve_lines_answers_each_request(channel: NetworkChannel) -> None:
    lines = [
        '{"id": 1, "method": "isActiveNetworkMetered"}\n',
        "\n",
        '{"id": 2, "method": "isActiveNetworkFast"}\n',
        '{"id": 3, "method": 42}\n',
        "garbage\n",
    ]
    responses = [json.loads(item) for item in serve_lines(channel, lines)]
    assert len(responses) == 4
    assert responses[0] == {"id": 1, "status": "success", "result": False}
    assert responses[1] == {"id": 2, "status": "not_implemented"}
    assert responses[2]["id"] == 3
    assert responses[2]["error"]["code"] == "invalid_request"
    assert responses[3]["id"] is None
    assert responses[3]["error"]["code"] == "invalid_request"

from __future__ import annotations

from naivepay_client_sdk.device_identity import (
    DEVICE_OS_HEADER,
    FINGERPRINT_HEADER,
    DeviceIdentityProvider,
    FingerprintStore,
    parse_user_agent,
)

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)


def test_fingerprint_is_stable_across_providers(tmp_path) -> None:
    store = FingerprintStore(base_dir=tmp_path)
    first = DeviceIdentityProvider(store, user_agent="").get_fingerprint()
    second = DeviceIdentityProvider(FingerprintStore(base_dir=tmp_path), user_agent="").get_fingerprint()
    assert first == second
    assert len(first) == 36


def test_corrupt_fingerprint_file_is_replaced(tmp_path) -> None:
    (tmp_path / "device.json").write_text("{not json")
    fingerprint = DeviceIdentityProvider(FingerprintStore(base_dir=tmp_path), user_agent="").get_fingerprint()
    assert fingerprint
    assert FingerprintStore(base_dir=tmp_path).read() == fingerprint


def test_parse_user_agent_classifies_devices(device) -> None:
    desktop = device.get_device_info()
    assert desktop.os == "Windows"
    assert desktop.browser == "Chrome"
    assert desktop.type == "DESKTOP"
    assert desktop.language == "es-CL"

    phone = parse_user_agent(IPHONE_UA)
    assert phone.os == "iOS"
    assert phone.type == "MOBILE"

    assert parse_user_agent(IPAD_UA).type == "TABLET"


def test_unparseable_user_agent_degrades_to_unknown() -> None:
    summary = parse_user_agent("")
    assert summary.os == "Unknown"
    assert summary.browser == "Unknown"
    assert summary.type == "Unknown"


def test_device_headers_carry_fingerprint(device) -> None:
    headers = device.device_headers()
    assert headers[FINGERPRINT_HEADER] == device.get_fingerprint()
    assert headers[DEVICE_OS_HEADER] == "Windows"


def test_unwritable_data_dir_keeps_fingerprint_in_memory(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = FingerprintStore(base_dir=blocker / "device")
    provider = DeviceIdentityProvider(store, user_agent="")

    fingerprint = provider.get_fingerprint()

    assert len(fingerprint) == 36
    assert provider.get_fingerprint() == fingerprint
    assert store.read() is None
    assert store.write(fingerprint) is False

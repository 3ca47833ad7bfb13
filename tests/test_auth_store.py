from __future__ import annotations

import stat

from naivepay_client_sdk.auth_store import AuthStore, MemoryAuthStore
from naivepay_client_sdk.models import SessionData, UserRole


def test_auth_store_roundtrip_and_permissions(tmp_path) -> None:
    store = AuthStore(base_dir=tmp_path)
    store.save(SessionData(access_token="abc", role=UserRole.ADMIN, env_name="test"))

    loaded = store.load()
    assert loaded is not None
    assert loaded.role is UserRole.ADMIN
    assert store.get_token() == "abc"
    mode = stat.S_IMODE((tmp_path / "session.json").stat().st_mode)
    assert mode == 0o600


def test_auth_store_discards_corrupt_file(tmp_path) -> None:
    (tmp_path / "session.json").write_text("{oops")
    store = AuthStore(base_dir=tmp_path)
    assert store.load() is None
    assert not (tmp_path / "session.json").exists()


def test_clear_notifies_only_when_something_was_stored() -> None:
    store = MemoryAuthStore()
    seen: list[object] = []
    unsubscribe = store.subscribe(seen.append)

    store.clear()
    store.save(SessionData(access_token="t1"))
    store.clear()
    store.clear()
    unsubscribe()
    store.save(SessionData(access_token="t2"))

    assert [item.access_token if item else None for item in seen] == ["t1", None]

import os
import stat

import pytest

from ip_watch.cache import CacheStore, CacheRecord
from ip_watch.resolver import AddressFamily


@pytest.fixture
def store(tmp_path):
    return CacheStore(tmp_path / "ipwatch" / "cache.env")


# ========================
# TEST GROUP: Cache Record
# ========================
def test_record_get_and_replace():
    record = CacheRecord(last_ipv4="203.0.113.5")

    updated = record.with_address(AddressFamily.IPV6, "2001:db8::1")

    assert updated.get(AddressFamily.IPV4) == "203.0.113.5"
    assert updated.get(AddressFamily.IPV6) == "2001:db8::1"
    assert record.last_ipv6 == ""   # source record untouched


# =======================
# TEST GROUP: Cache Store
# =======================
def test_load_missing_file_is_empty(store):
    assert store.load() == CacheRecord("", "")

def test_save_then_load(store):
    store.save(CacheRecord(last_ipv4="203.0.113.5", last_ipv6="2001:db8::1"))

    assert store.load() == CacheRecord("203.0.113.5", "2001:db8::1")
    assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600

def test_save_replaces_whole_file(store):
    """No merge with previous content: stale keys disappear"""
    store.path.parent.mkdir(parents=True)
    store.path.write_text('LAST_IPV4="192.0.2.1"\nSTALE="x"\n')

    store.save(CacheRecord(last_ipv4="203.0.113.9"))

    assert store.path.read_text() == 'LAST_IPV4="203.0.113.9"\nLAST_IPV6=""\n'

def test_save_leaves_no_temp_files(store):
    store.save(CacheRecord(last_ipv4="203.0.113.5"))
    store.save(CacheRecord(last_ipv4="203.0.113.6"))

    assert sorted(p.name for p in store.path.parent.iterdir()) == ["cache.env"]

@pytest.mark.parametrize(
    "record",
    [
        CacheRecord(last_ipv4="not-an-ip"),
        CacheRecord(last_ipv6="2001-db8"),
    ],
)
def test_save_rejects_invalid_addresses(store, record):
    """The cache never stores a syntactically invalid address"""
    with pytest.raises(ValueError):
        store.save(record)

    assert not store.path.exists()

def test_load_discards_invalid_values(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text('LAST_IPV4="garbage"\nLAST_IPV6="2001:db8::1"\n')

    assert store.load() == CacheRecord("", "2001:db8::1")

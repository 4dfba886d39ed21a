import json
import os

import pytest

from codesctl.install import RemoteStatus
from codesctl.status_cache import StatusCache, default_cache_path


@pytest.fixture
def cache(tmp_path):
    return StatusCache(tmp_path / "sub" / "remote-status.json")


def test_default_cache_path(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_cache_path() == os.path.join(str(tmp_path), ".codes", "remote-status.json")


def test_missing_file_loads_empty(cache):
    assert cache.load() == {}


def test_invalid_json_loads_empty(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    assert StatusCache(path).load() == {}


def test_wrong_shape_loads_empty(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"hosts": {"a": {"os": 5}}}))
    assert StatusCache(path).load() == {}


def test_save_load_round_trip(cache):
    hosts = {
        "box": RemoteStatus(True, "v1.0.0", True, "Linux", "x86_64"),
        "mac": RemoteStatus(os="Darwin", arch="arm64"),
    }
    cache.save(hosts)
    assert cache.load() == hosts


def test_saved_document_has_hosts_key(cache):
    status = RemoteStatus(os="Linux", arch="x86_64")
    cache.save({"box": status})
    document = json.loads(cache.path.read_text())
    assert document == {"hosts": {"box": status.to_dict()}}


def test_update_adds_and_replaces(cache):
    cache.update("box", RemoteStatus(os="Linux"))
    cache.update("box", RemoteStatus(os="Darwin"))
    cache.update("other", RemoteStatus(arch="arm64"))
    loaded = cache.load()
    assert set(loaded) == {"box", "other"}
    assert loaded["box"].os == "Darwin"


def test_delete_removes_host(cache):
    cache.update("box", RemoteStatus(os="Linux"))
    cache.update("other", RemoteStatus(os="Linux"))
    cache.delete("box")
    assert list(cache.load()) == ["other"]


def test_delete_unknown_host_keeps_others(cache):
    cache.update("box", RemoteStatus(os="Linux"))
    cache.delete("missing")
    assert list(cache.load()) == ["box"]


def test_null_entries_are_skipped(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"hosts": {"gone": None, "box": {"os": "Linux"}}}))
    assert StatusCache(path).load() == {"box": RemoteStatus(os="Linux")}
import pytest

from mjss.mjss_config import Config, load_config, make_store, set_debug, debug_enabled
from mjss.mjss_http import HttpStore
from mjss.mjss_store import FileStore, MemoryStore


def test_defaults_without_file_or_env():
    cfg = load_config(environ={})
    assert cfg == Config()
    assert cfg.storage_key == "MJSS_SCRIPT"
    assert cfg.store == "memory"


def test_yaml_file_then_env_override(tmp_path):
    p = tmp_path / "mjss.yaml"
    p.write_text("store: file\nstore-path: state\nstrict: true\nretries: 5\n", encoding="utf-8")
    cfg = load_config(str(p), environ={"MJSS_STORE_PATH": "other", "MJSS_STRICT": "no"})
    assert cfg.store == "file"
    assert cfg.store_path == "other"
    assert cfg.strict is False
    assert cfg.retries == 5


def test_unknown_key_and_bad_store_rejected(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("colour: red\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(p), environ={})
    with pytest.raises(ValueError):
        load_config(environ={"MJSS_STORE": "redis"})


def test_non_mapping_file_rejected(tmp_path):
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(p), environ={})


def test_make_store_kinds(tmp_path):
    assert isinstance(make_store(Config()), MemoryStore)
    fs = make_store(Config(store="file", store_path=str(tmp_path)))
    assert isinstance(fs, FileStore)
    hs = make_store(Config(store="http", store_url="http://kv.example", timeout=1.0, retries=0))
    assert isinstance(hs, HttpStore)
    assert hs.config == {"timeout": 1.0, "retries": 0}
    with pytest.raises(ValueError):
        make_store(Config(store="http"))


def test_debug_override_beats_environment(monkeypatch):
    monkeypatch.setenv("MJSS_DEBUG", "1")
    try:
        set_debug(False)
        assert debug_enabled() is False
        set_debug(None)
        assert debug_enabled() is True
    finally:
        set_debug(None)

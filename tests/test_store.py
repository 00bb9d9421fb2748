import httpx
import pytest

from mjss.mjss_datatypes import StoreError
from mjss.mjss_http import HttpStore, http_request
from mjss.mjss_store import FileStore, MemoryStore


def test_memory_store_roundtrip():
    s = MemoryStore()
    assert s.get("k") is None
    s.set("k", 'text = "Hi"')
    assert s.get("k") == 'text = "Hi"'


def test_file_store_creates_directory_and_roundtrips(tmp_path):
    d = tmp_path / "nested" / "state"
    s = FileStore(str(d))
    assert s.get("MJSS_SCRIPT") is None
    s.set("MJSS_SCRIPT", 'text = "Hi"\ncolor = "red"')
    assert (d / "MJSS_SCRIPT.mjss").read_text(encoding="utf-8") == 'text = "Hi"\ncolor = "red"'
    assert s.get("MJSS_SCRIPT") == 'text = "Hi"\ncolor = "red"'


@pytest.mark.parametrize("key", ["", "../escape", "a/b", "a\\b", ".."])
def test_file_store_rejects_path_like_keys(tmp_path, key):
    s = FileStore(str(tmp_path))
    with pytest.raises(ValueError):
        s.set(key, "x")


def test_file_store_write_failure_is_store_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    s = FileStore(str(blocker))
    with pytest.raises(StoreError):
        s.set("k", "v")


# ---- HTTP ----

def kv_server():
    data = {}
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = request.url.path.rsplit("/", 1)[-1]
        if request.method == "GET":
            if key not in data:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, text=data[key])
        if request.method == "PUT":
            data[key] = request.content.decode("utf-8")
            return httpx.Response(204)
        return httpx.Response(405)

    return httpx.MockTransport(handler), data, seen


def test_http_store_get_missing_returns_none():
    transport, data, seen = kv_server()
    s = HttpStore("http://kv.example/scripts/", transport=transport)
    assert s.get("MJSS_SCRIPT") is None
    assert str(seen[0].url) == "http://kv.example/scripts/MJSS_SCRIPT"


def test_http_store_put_then_get():
    transport, data, seen = kv_server()
    s = HttpStore("http://kv.example/scripts", transport=transport)
    s.set("MJSS_SCRIPT", 'text = "Hi"')
    assert data["MJSS_SCRIPT"] == 'text = "Hi"'
    assert seen[0].headers["content-type"].startswith("text/plain")
    assert s.get("MJSS_SCRIPT") == 'text = "Hi"'


def test_http_store_server_error_raises_store_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
    s = HttpStore("http://kv.example", transport=transport)
    with pytest.raises(StoreError) as ei:
        s.get("k")
    assert "HTTP 500" in str(ei.value)
    with pytest.raises(StoreError):
        s.set("k", "v")


def test_http_request_retries_transport_errors_then_succeeds():
    attempts = {"n": 0}

    def handler(request):
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, text="ok")

    resp = http_request("GET", "http://kv.example/x",
                        config={"retries": 2, "backoff": 0}, transport=httpx.MockTransport(handler))
    assert resp.text == "ok"
    assert attempts["n"] == 3


def test_http_request_gives_up_after_retries():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(StoreError):
        http_request("GET", "http://kv.example/x",
                     config={"retries": 1, "backoff": 0}, transport=httpx.MockTransport(handler))

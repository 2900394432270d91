import httpx
import pytest

from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError, TransportError, ValidationError
from chat_core.transport.http_transport import HttpTransport


class SettingsStub:
    openai_api_key = "sk-test-0000000000"
    http_timeout = 1.0


def make_client(resp=None, error=None, captured=None, stream_resp=None):
    class StreamContext:
        def __enter__(self):
            return stream_resp

        def __exit__(self, *args):
            return False

    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, **kw):
            if captured is not None:
                captured["url"] = url
                captured.update(kw)
            if error is not None:
                raise error
            return resp

        def stream(self, method, url, **kw):
            if captured is not None:
                captured["method"] = method
                captured.update(kw)
            return StreamContext()

    return Client


class Resp:
    def __init__(self, status_code=200, content=b"", text=""):
        self.status_code = status_code
        self.content = content
        self.text = text


def test_post_returns_raw_bytes(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.Client", make_client(resp=Resp(content=b'{"ok": 1}'), captured=captured))

    out = HttpTransport(SettingsStub()).post("https://example.test/chat", b'{"a":1}', False)

    assert out == b'{"ok": 1}'
    assert captured["url"] == "https://example.test/chat"
    assert captured["content"] == b'{"a":1}'
    assert captured["headers"]["Authorization"] == "Bearer sk-test-0000000000"
    assert captured["client_kwargs"]["timeout"] == 1.0


def test_missing_api_key():
    class NoKey:
        openai_api_key = None
        http_timeout = 1.0

    with pytest.raises(ValidationError) as exc:
        HttpTransport(NoKey()).post("u", b"{}", False)
    assert exc.value.code == "MISSING_API_KEY"


def test_network_error(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(error=httpx.ConnectError("connection refused")))

    with pytest.raises(NetworkError) as exc:
        HttpTransport(SettingsStub()).post("u", b"{}", False)
    assert isinstance(exc.value, TransportError)
    assert str(exc.value) == "connection refused"


def test_rate_limit(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(resp=Resp(status_code=429)))

    with pytest.raises(RateLimitError):
        HttpTransport(SettingsStub()).post("u", b"{}", False)


def test_api_error_keeps_body(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(resp=Resp(status_code=401, text='{"error": "bad key"}')))

    with pytest.raises(ApiError) as exc:
        HttpTransport(SettingsStub()).post("u", b"{}", False)
    assert exc.value.http_status == 401
    assert str(exc.value) == '{"error": "bad key"}'


class StreamResp:
    def __init__(self, lines, status_code=200, text=""):
        self.status_code = status_code
        self.text = text
        self._lines = list(lines)
        self.consumed = []
        self.read_called = False

    def read(self):
        self.read_called = True

    def iter_lines(self):
        for line in self._lines:
            self.consumed.append(line)
            yield line


def test_post_stream_yields_lines_as_they_arrive(monkeypatch):
    stream_resp = StreamResp(["data: a", "", "data: [DONE]"])
    captured = {}
    monkeypatch.setattr("httpx.Client", make_client(stream_resp=stream_resp, captured=captured))

    lines = HttpTransport(SettingsStub()).post_stream("u", b"{}")

    assert next(lines) == "data: a"
    assert stream_resp.consumed == ["data: a"]
    assert list(lines) == ["", "data: [DONE]"]
    assert captured["method"] == "POST"
    assert captured["content"] == b"{}"


def test_post_with_stream_flag_joins_lines(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(stream_resp=StreamResp(["data: a", "data: [DONE]"])))

    out = HttpTransport(SettingsStub()).post("u", b"{}", True)

    assert out == b"data: a\ndata: [DONE]"


def test_post_stream_rate_limit(monkeypatch):
    monkeypatch.setattr("httpx.Client", make_client(stream_resp=StreamResp([], status_code=429)))

    with pytest.raises(RateLimitError):
        list(HttpTransport(SettingsStub()).post_stream("u", b"{}"))


def test_post_stream_api_error(monkeypatch):
    stream_resp = StreamResp(["never"], status_code=500, text="upstream down")
    monkeypatch.setattr("httpx.Client", make_client(stream_resp=stream_resp))

    with pytest.raises(ApiError) as exc:
        list(HttpTransport(SettingsStub()).post_stream("u", b"{}"))
    assert exc.value.http_status == 500
    assert str(exc.value) == "upstream down"
    assert stream_resp.read_called
    assert stream_resp.consumed == []


def test_post_stream_network_error(monkeypatch):
    class BrokenResp(StreamResp):
        def iter_lines(self):
            yield "data: a"
            raise httpx.ReadTimeout("read timed out")

    monkeypatch.setattr("httpx.Client", make_client(stream_resp=BrokenResp([])))

    lines = HttpTransport(SettingsStub()).post_stream("u", b"{}")
    assert next(lines) == "data: a"
    with pytest.raises(NetworkError) as exc:
        next(lines)
    assert str(exc.value) == "read timed out"

from dataclasses import dataclass, field

import pytest
import requests
from requests.auth import HTTPBasicAuth

from bdaystate import fetch
from bdaystate.errors import SourceUnavailable
from bdaystate.fetch import fetch_text, is_http_url


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = "BEGIN:VCALENDAR\nEND:VCALENDAR\n"
    headers: dict = field(default_factory=dict)
    encoding: str = None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")


@dataclass
class FakeGet:
    response: FakeResponse = field(default_factory=FakeResponse)
    calls: list = field(default_factory=list)

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_is_http_url() -> None:
    assert is_http_url("https://example.org/cal.ics")
    assert is_http_url("HTTP://example.org/cal.ics")
    assert not is_http_url("/var/lib/birthdays.ics")
    assert not is_http_url("httpfile.ics")


def test_fetch_text_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_get = FakeGet()
    monkeypatch.setattr(fetch.requests, "get", fake_get)

    assert fetch_text("https://example.org/cal.ics") == fake_get.response.text

    url, kwargs = fake_get.calls[0]
    assert url == "https://example.org/cal.ics"
    assert kwargs["auth"] is None
    assert kwargs["verify"] is True
    assert kwargs["timeout"] == 4.5


def test_fetch_text_with_basic_auth_and_no_verification(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_get = FakeGet()
    monkeypatch.setattr(fetch.requests, "get", fake_get)

    fetch_text("https://example.org/cal.ics", "user", "secret", ignore_cert_errors=True, timeout=2)

    _, kwargs = fake_get.calls[0]
    assert isinstance(kwargs["auth"], HTTPBasicAuth)
    assert (kwargs["auth"].username, kwargs["auth"].password) == ("user", "secret")
    assert kwargs["verify"] is False
    assert kwargs["timeout"] == 2


def test_fetch_text_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fetch.requests, "get", FakeGet(response=FakeResponse(status_code=404)))

    with pytest.raises(SourceUnavailable, match="404"):
        fetch_text("https://example.org/missing.ics")


def test_fetch_text_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_get(url, **kwargs):
        raise requests.exceptions.ConnectTimeout("connect timeout")

    monkeypatch.setattr(fetch.requests, "get", failing_get)

    with pytest.raises(SourceUnavailable, match="connect timeout"):
        fetch_text("https://unreachable.example.org/cal.ics")


def make_response(body: bytes, content_type: str) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response._content = body
    response.headers["Content-Type"] = content_type
    # what requests.get would pick from the headers
    response.encoding = requests.utils.get_encoding_from_headers(response.headers)
    return response


CALENDAR = "BEGIN:VCALENDAR\nBEGIN:VEVENT\nSUMMARY:Jürgen Müller\nEND:VEVENT\nEND:VCALENDAR\n"


def test_fetch_text_without_charset_is_utf8(monkeypatch: pytest.MonkeyPatch) -> None:
    response = make_response(CALENDAR.encode("utf-8"), "text/calendar")
    monkeypatch.setattr(fetch.requests, "get", FakeGet(response=response))

    text = fetch_text("https://example.org/cal.ics")

    assert "SUMMARY:Jürgen Müller" in text


def test_fetch_text_keeps_declared_charset(monkeypatch: pytest.MonkeyPatch) -> None:
    response = make_response(CALENDAR.encode("latin-1"), "text/calendar; charset=ISO-8859-1")
    monkeypatch.setattr(fetch.requests, "get", FakeGet(response=response))

    text = fetch_text("https://example.org/cal.ics")

    assert "SUMMARY:Jürgen Müller" in text

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import pytest
from requests.cookies import RequestsCookieJar


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


BASE_URL = "https://portal.example.test"

FEED_HEADER = (
    '"Posting Date","Tag/Vehicle Reg.","Transaction Date","Transaction Time","Facility",'
    '"Entry/Barrier Plaza","Exit Plaza","Toll","Discount Eligible?"'
)


def login_page(token_name: str = "token_abc123", token_value: str = "tok-value-1") -> str:
    return (
        "<html><body><form action=\"/EZPass/ProcessLogin.do\" method=\"post\">"
        f'<input type="hidden" name="{token_name}" value="{token_value}">'
        '<input name="username"><input name="password" type="password">'
        "</form></body></html>"
    )


LOGGED_IN_PAGE = '<html><a href="/EZPass/ProcessLogout.do">Log out</a></html>'
CONFLICT_PAGE = "<html><h2>Account Already Logged In</h2></html>"
BAD_CREDENTIALS_PAGE = "<html><p>Invalid username or password.</p></html>"
MAINTENANCE_PAGE = (
    "<html><h1>We're Sorry</h1>"
    "<p>The online Maine Customer Service Center is currently unavailable.</p></html>"
)


@dataclass
class FakeResponse:
    text: str
    status_code: int = 200
    set_cookies: dict[str, str] = field(default_factory=dict)


@dataclass
class FakeCall:
    method: str
    url: str
    params: Optional[dict] = None
    data: Optional[dict] = None
    headers: Optional[dict] = None
    cookies: dict[str, str] = field(default_factory=dict)


class FakeHttp:
    """
    Stand-in for `requests.Session` that serves scripted responses from a shared FakePortal.
    """

    def __init__(self, portal: "FakePortal") -> None:
        self._portal = portal
        self.cookies = RequestsCookieJar()

    def _serve(self, call: FakeCall) -> FakeResponse:
        call.cookies = {c.name: c.value for c in self.cookies}
        self._portal.calls.append(call)
        if not self._portal.responses:
            raise AssertionError(f"unexpected request: {call.method} {call.url}")
        item = self._portal.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        for name, value in item.set_cookies.items():
            self.cookies.set(name, value, domain="portal.example.test", path="/")
        return item

    def get(self, url: str, params: Optional[dict] = None, headers: Optional[dict] = None, **_kwargs: Any) -> FakeResponse:
        return self._serve(FakeCall(method="GET", url=url, params=params, headers=headers))

    def post(self, url: str, data: Optional[dict] = None, **_kwargs: Any) -> FakeResponse:
        return self._serve(FakeCall(method="POST", url=url, data=data))


class FakePortal:
    def __init__(self) -> None:
        self.responses: list[Union[FakeResponse, Exception]] = []
        self.calls: list[FakeCall] = []
        self.sessions_created = 0

    def queue(self, *items: Union[FakeResponse, Exception, str]) -> None:
        for item in items:
            self.responses.append(FakeResponse(item) if isinstance(item, str) else item)

    def http_factory(self) -> FakeHttp:
        self.sessions_created += 1
        return FakeHttp(self)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_portal() -> FakePortal:
    return FakePortal()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    return []

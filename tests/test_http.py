"""http seam unit tests."""

from datetime import datetime, timedelta, timezone

from k1s0_session_cookie import SessionCookie, SessionRequest, SessionResponse


def test_request_headers_case_insensitive() -> None:
    request = SessionRequest.build(headers={"If-User-Id": "u-1"})
    assert request.header_values("if-user-id") == ["u-1"]
    assert request.header_values("IF-USER-ID") == ["u-1"]


def test_request_keeps_repeated_headers() -> None:
    request = SessionRequest.build(
        headers=[("Origin", "https://a.example.com"), ("origin", "https://b.example.com")]
    )
    assert request.header_values("Origin") == ["https://a.example.com", "https://b.example.com"]


def test_request_list_values() -> None:
    request = SessionRequest.build(query={"if-userId": ["a", "b"]})
    assert request.query_values("IF-USERID") == ["a", "b"]


def test_request_missing_header() -> None:
    assert SessionRequest.build().header_values("Origin") == []


def test_persistent_cookie_header() -> None:
    cookie = SessionCookie(
        name="session-token",
        value="abc",
        max_age=timedelta(days=30),
        expires=datetime(2026, 2, 14, 9, 0, tzinfo=timezone.utc),
    )
    assert cookie.to_header() == (
        "session-token=abc; Max-Age=2592000; Expires=Sat, 14 Feb 2026 09:00:00 GMT; "
        "Path=/; Secure; HttpOnly; SameSite=None"
    )


def test_session_scoped_cookie_header() -> None:
    cookie = SessionCookie(name="session-token", value="abc")
    header = cookie.to_header()
    assert "Max-Age" not in header
    assert "Expires" not in header
    assert header.endswith("Path=/; Secure; HttpOnly; SameSite=None")


def test_delete_cookie() -> None:
    response = SessionResponse()
    response.delete_cookie("session-token")
    cookie = response.get_cookie("session-token")
    assert cookie is not None
    assert cookie.is_deletion
    assert "Max-Age=0" in cookie.to_header()
    assert "Expires=Thu, 01 Jan 1970 00:00:00 GMT" in cookie.to_header()


def test_set_cookie_replaces_previous_mutation() -> None:
    response = SessionResponse()
    response.delete_cookie("session-token")
    response.set_cookie(SessionCookie(name="session-token", value="new"))
    assert len(response.cookies) == 1
    assert response.set_cookie_headers()[0].startswith("session-token=new;")

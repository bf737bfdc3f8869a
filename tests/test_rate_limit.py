"""Tests for the sliding-window rate limiter and client address resolution."""

from __future__ import annotations

from starlette.requests import Request

from src.middleware.rate_limit import SlidingWindowLimiter, client_address


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(headers: dict[str, str] | None = None, peer: str = "10.0.0.9") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/complaints",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (peer, 52100),
    }
    return Request(scope)


class TestSlidingWindowLimiter:
    def test_allows_up_to_limit(self) -> None:
        limiter = SlidingWindowLimiter(3, clock=FakeClock())
        assert [limiter.hit("a")[:2] for _ in range(3)] == [(True, 2), (True, 1), (True, 0)]
        allowed, remaining, retry_after = limiter.hit("a")
        assert (allowed, remaining) == (False, 0)
        assert 1 <= retry_after <= 61

    def test_keys_are_independent(self) -> None:
        limiter = SlidingWindowLimiter(1, clock=FakeClock())
        assert limiter.hit("a")[0] is True
        assert limiter.hit("b")[0] is True
        assert limiter.hit("a")[0] is False

    def test_window_slides(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowLimiter(2, window_seconds=60, clock=clock)
        limiter.hit("a")
        clock.now += 30
        limiter.hit("a")
        assert limiter.hit("a")[0] is False
        clock.now += 31
        assert limiter.hit("a")[0] is True

    def test_refused_hits_are_not_recorded(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowLimiter(1, window_seconds=10, clock=clock)
        limiter.hit("a")
        for _ in range(5):
            clock.now += 1
            limiter.hit("a")
        clock.now += 5
        assert limiter.hit("a")[0] is True

    def test_stale_keys_are_swept(self) -> None:
        clock = FakeClock()
        limiter = SlidingWindowLimiter(5, window_seconds=10, clock=clock, sweep_every=3)
        limiter.hit("a")
        limiter.hit("b")
        assert limiter.tracked_keys == 2
        clock.now += 20
        limiter.hit("c")
        assert limiter.tracked_keys == 1


class TestClientAddress:
    def test_peer_without_headers(self) -> None:
        assert client_address(_request(), 1) == "10.0.0.9"

    def test_trusted_proxy_hop(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7, 198.51.100.2, 10.0.0.1"})
        assert client_address(request, 1) == "198.51.100.2"
        assert client_address(request, 2) == "203.0.113.7"

    def test_short_header_uses_leftmost(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7"})
        assert client_address(request, 3) == "203.0.113.7"

    def test_no_trusted_proxies_uses_leftmost(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert client_address(request, 0) == "203.0.113.7"

    def test_real_ip_header(self) -> None:
        assert client_address(_request({"X-Real-IP": " 198.51.100.4 "}), 1) == "198.51.100.4"

"""Tests for the fixed-window rate limiter."""

from unittest.mock import Mock, patch

import pytest
from fastapi import Request

from promptatrium.core.errors import RateLimitError
from promptatrium.server.services.rate_limit import (
    RATE_LIMIT_RULES,
    RateLimiter,
    RateLimitRule,
    rate_limit,
    rate_limiter,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def limiter(self, clock):
        return RateLimiter({"tiny": RateLimitRule(60, 2, "Slow down")}, clock=clock)

    def test_allows_up_to_max_requests(self, limiter):
        limiter.hit("tiny", "10.0.0.1")
        limiter.hit("tiny", "10.0.0.1")

        with pytest.raises(RateLimitError) as exc_info:
            limiter.hit("tiny", "10.0.0.1")

        assert exc_info.value.message == "Slow down"
        assert exc_info.value.retry_after == 60

    def test_clients_are_counted_separately(self, limiter):
        for _ in range(2):
            limiter.hit("tiny", "10.0.0.1")

        limiter.hit("tiny", "10.0.0.2")

    def test_window_expires(self, limiter, clock):
        for _ in range(2):
            limiter.hit("tiny", "10.0.0.1")

        clock.now += 60
        limiter.hit("tiny", "10.0.0.1")

    def test_expired_windows_are_dropped(self, limiter, clock):
        limiter.hit("tiny", "10.0.0.1")
        clock.now += 30
        limiter.hit("tiny", "10.0.0.2")

        clock.now += 40
        limiter.hit("tiny", "10.0.0.3")

        assert set(limiter._windows) == {("tiny", "10.0.0.2"), ("tiny", "10.0.0.3")}

    def test_reset_clears_counters(self, limiter):
        for _ in range(2):
            limiter.hit("tiny", "10.0.0.1")

        limiter.reset()
        limiter.hit("tiny", "10.0.0.1")

    def test_unknown_rule_raises_key_error(self, limiter):
        with pytest.raises(KeyError):
            limiter.hit("missing", "10.0.0.1")


class TestRateLimitRules:
    @pytest.mark.parametrize(
        "name,window,max_requests",
        [
            ("auth", 900, 5),
            ("registration", 3600, 3),
            ("api", 900, 100),
            ("strict", 60, 10),
            ("image_upload", 300, 10),
            ("prompt_creation", 300, 20),
            ("data_export", 3600, 5),
            ("search", 60, 30),
        ],
    )
    def test_rule_table(self, name, window, max_requests):
        rule = RATE_LIMIT_RULES[name]

        assert rule.window_seconds == window
        assert rule.max_requests == max_requests


class TestRateLimitDependency:
    @pytest.fixture
    def request_from(self):
        def _make(host):
            request = Mock(spec=Request)
            request.client = Mock()
            request.client.host = host
            return request

        return _make

    def test_unknown_rule_is_rejected_at_build_time(self):
        with pytest.raises(KeyError):
            rate_limit("nope")

    async def test_not_enforced_in_development(self, request_from):
        dependency = rate_limit("strict")

        with patch("promptatrium.server.services.rate_limit._is_enforced", return_value=False):
            for _ in range(20):
                await dependency(request_from("10.0.0.9"))

    async def test_enforced_outside_development(self, request_from):
        dependency = rate_limit("strict")

        with patch("promptatrium.server.services.rate_limit._is_enforced", return_value=True):
            for _ in range(10):
                await dependency(request_from("10.0.0.9"))
            with pytest.raises(RateLimitError):
                await dependency(request_from("10.0.0.9"))

        rate_limiter.reset()

"""Tests for the sliding-window rate limiter."""
from unittest.mock import patch

from acorn_login.rate_limit import check_and_consume, tracked_keys


def test_under_limit_allowed():
    assert check_and_consume("k1", 3) == (True, None)
    assert check_and_consume("k1", 3) == (True, None)
    assert check_and_consume("k1", 3) == (True, None)


def test_over_limit_returns_retry_after():
    for _ in range(2):
        check_and_consume("k2", 2)
    allowed, retry_after = check_and_consume("k2", 2)
    assert allowed is False
    assert 1 <= retry_after <= 60


def test_keys_are_independent():
    check_and_consume("k3", 1)
    assert check_and_consume("k3", 1)[0] is False
    assert check_and_consume("k4", 1)[0] is True


def test_zero_limit_disables():
    for _ in range(10):
        assert check_and_consume("k5", 0) == (True, None)
    assert tracked_keys() == 0


def test_window_expires():
    with patch("acorn_login.rate_limit.time.monotonic", return_value=100.0):
        check_and_consume("k6", 1)
        assert check_and_consume("k6", 1)[0] is False
    with patch("acorn_login.rate_limit.time.monotonic", return_value=161.0):
        assert check_and_consume("k6", 1)[0] is True


def test_idle_addresses_are_forgotten():
    with patch("acorn_login.rate_limit.time.monotonic", return_value=100.0):
        for i in range(50):
            check_and_consume(f"10.0.0.{i}", 5)
        assert tracked_keys() == 50
    with patch("acorn_login.rate_limit.time.monotonic", return_value=161.0):
        assert tracked_keys() == 0
        # a returning address starts with a fresh budget
        assert check_and_consume("10.0.0.1", 1) == (True, None)
        assert tracked_keys() == 1


def test_retry_after_counts_down_from_oldest_poll():
    with patch("acorn_login.rate_limit.time.monotonic", return_value=100.0):
        check_and_consume("k7", 1)
    with patch("acorn_login.rate_limit.time.monotonic", return_value=130.5):
        assert check_and_consume("k7", 1) == (False, 30)

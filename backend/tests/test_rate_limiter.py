from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.utils import rate_limiter


def _request(ip, path="/api/auth/login"):
    return SimpleNamespace(client=SimpleNamespace(host=ip), url=SimpleNamespace(path=path))


@pytest.fixture
def clock(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(rate_limiter, "time", SimpleNamespace(time=lambda: now[0]))
    return now


def test_limit_applies_within_window(clock):
    limiter = rate_limiter.rate_limit(requests=2, window=60)
    limiter(_request("10.0.0.1"))
    limiter(_request("10.0.0.1"))

    with pytest.raises(HTTPException) as exc:
        limiter(_request("10.0.0.1"))

    assert exc.value.status_code == 429
    assert limiter(_request("10.0.0.2")) is True


def test_window_resets_after_expiry(clock):
    limiter = rate_limiter.rate_limit(requests=1, window=60)
    limiter(_request("10.0.0.1"))

    clock[0] += 61

    assert limiter(_request("10.0.0.1")) is True


def test_expired_windows_are_evicted(clock):
    limiter = rate_limiter.rate_limit(requests=5, window=60)
    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        limiter(_request(ip))
    assert len(rate_limiter._rate_limit_store) == 3

    clock[0] += 60 + rate_limiter.SWEEP_INTERVAL
    limiter(_request("10.0.0.9"))

    assert list(rate_limiter._rate_limit_store) == [("10.0.0.9", "/api/auth/login")]

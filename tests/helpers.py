"""Assertion helpers for Result values."""

from datetime import UTC, datetime, timedelta

from nexus.domain.shared import Err, ErrorCode, Ok

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def ok(result):
    assert isinstance(result, Ok), f"expected Ok, got {result!r}"
    return result.value


def err(result, code: ErrorCode | None = None, reason: str | None = None):
    assert isinstance(result, Err), f"expected Err, got {result!r}"
    if code is not None:
        assert result.error.code == code, result.error
    if reason is not None:
        assert result.error.reason == reason, result.error
    return result.error

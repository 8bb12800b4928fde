"""FakeClock — deterministic clock advancing a fixed step per reading."""

from datetime import UTC, datetime, timedelta


class FakeClock:
    def __init__(
        self,
        start: datetime = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self._now = start
        self._step = step

    def __call__(self) -> datetime:
        current = self._now
        self._now += self._step
        return current

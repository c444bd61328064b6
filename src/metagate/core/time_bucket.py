"""Time bucket helpers.

A time bucket is a timestamp truncated to a fixed granularity and written as
a decimal number, e.g. minute bucket 202210171345 for 2022-10-17 13:45 UTC.
Buckets are computed in UTC.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum


class Step(Enum):
    """Granularity of a query duration."""

    DAY = "DAY"
    HOUR = "HOUR"
    MINUTE = "MINUTE"
    SECOND = "SECOND"


_STEP_FORMATS: dict[Step, str] = {
    Step.DAY: "%Y-%m-%d",
    Step.HOUR: "%Y-%m-%d %H",
    Step.MINUTE: "%Y-%m-%d %H%M",
    Step.SECOND: "%Y-%m-%d %H%M%S",
}

_STEP_LENGTHS: dict[Step, timedelta] = {
    Step.DAY: timedelta(days=1),
    Step.HOUR: timedelta(hours=1),
    Step.MINUTE: timedelta(minutes=1),
    Step.SECOND: timedelta(seconds=1),
}


def minute_time_bucket(timestamp_ms: int) -> int:
    """Truncate a millisecond timestamp to its minute bucket (yyyyMMddHHmm)."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return int(moment.strftime("%Y%m%d%H%M"))


def _parse(text: str, step: Step) -> datetime:
    try:
        parsed = datetime.strptime(text.strip(), _STEP_FORMATS[step])
    except ValueError as exc:
        raise ValueError(
            f"Time {text!r} does not match {step.value} format "
            f"{_STEP_FORMATS[step]!r}"
        ) from exc
    return parsed.replace(tzinfo=UTC)


@dataclass(frozen=True)
class Duration:
    """A query time range expressed in step-formatted strings.

    Attributes:
        start: Start time, formatted according to step.
        end: End time, formatted according to step.
        step: Granularity of start and end.
    """

    start: str
    end: str
    step: Step = Step.MINUTE

    def start_timestamp(self) -> int:
        """Millisecond timestamp of the beginning of the start unit."""
        return int(_parse(self.start, self.step).timestamp() * 1000)

    def end_timestamp(self) -> int:
        """Millisecond timestamp of the last millisecond of the end unit."""
        end = _parse(self.end, self.step) + _STEP_LENGTHS[self.step]
        return int(end.timestamp() * 1000) - 1

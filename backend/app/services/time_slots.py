"""Time slot derivation for sessions.

Slots are computed on demand from a session's duration and the fixed daily
operating window; nothing here is persisted or cached. All arithmetic is done
in minutes since midnight so windows that cross an hour boundary need no
clock handling.
"""

from dataclasses import dataclass
from typing import Iterator, List

from backend.app.core.errors import ValidationError

DAY_START_MINUTES = 9 * 60
DAY_END_MINUTES = 18 * 60
SLOT_STEP_MINUTES = 30


@dataclass(frozen=True)
class TimeSlot:
    start_minutes: int
    end_minutes: int

    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minutes)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minutes)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM``."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def parse_clock_time(value: str) -> int:
    """Parse ``HH:MM`` (or ``HH:MM:SS`` with zero seconds) into minutes since midnight.

    Raises:
        ValidationError: if the value is not a valid wall-clock time.
    """
    if not isinstance(value, str):
        raise ValidationError("Time must be a string in HH:MM format", field="time")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() and len(part) == 2 for part in parts):
        raise ValidationError(f"Invalid time '{value}', expected HH:MM", field="time")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > 23 or minutes > 59 or seconds != 0:
        raise ValidationError(f"Invalid time '{value}', expected HH:MM", field="time")
    return hours * 60 + minutes


def generate_slots(duration_minutes: int) -> Iterator[TimeSlot]:
    """Yield the bookable slots for a session of the given duration.

    Candidate start times run every 30 minutes from 09:00 through 18:00
    inclusive; a candidate is kept only when it ends no later than 18:00.
    Each call returns a fresh generator, so the sequence can be re-read by
    calling again. A duration longer than the window yields nothing.

    Raises:
        ValidationError: if duration_minutes is not a positive integer.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes < 1:
        raise ValidationError("Duration must be a positive number of minutes", field="duration_minutes")
    return _iter_slots(duration_minutes)


def _iter_slots(duration_minutes: int) -> Iterator[TimeSlot]:
    for start in range(DAY_START_MINUTES, DAY_END_MINUTES + 1, SLOT_STEP_MINUTES):
        end = start + duration_minutes
        if end > DAY_END_MINUTES:
            break
        yield TimeSlot(start_minutes=start, end_minutes=end)


def list_slots(duration_minutes: int) -> List[TimeSlot]:
    return list(generate_slots(duration_minutes))


def is_valid_slot(duration_minutes: int, start_time: str) -> bool:
    """Return True when start_time is the start of a slot generated for this duration."""
    try:
        start = parse_clock_time(start_time)
    except ValidationError:
        return False
    return any(slot.start_minutes == start for slot in generate_slots(duration_minutes))

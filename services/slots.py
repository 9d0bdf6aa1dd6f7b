from collections import namedtuple

from sqlalchemy.orm import Session

from exceptions import InvalidRequest
from services.availability import get_availability, to_seconds, from_seconds, overlaps
from services.conflicts import active_appointments

Slot = namedtuple("Slot", ["start", "end"])


def generate_slots(windows, busy, slot_duration):
    """Yield slots of ``slot_duration`` minutes stepping from each window start.

    A trailing slot that would run past the window end is dropped, and slots
    overlapping any busy ``(start, end)`` interval, in seconds since midnight,
    are skipped.
    """
    step = slot_duration * 60
    for window in windows:
        current = to_seconds(window.start)
        limit = to_seconds(window.end)
        while current + step <= limit:
            end = current + step
            if not any(overlaps(current, end, busy_start, busy_end) for busy_start, busy_end in busy):
                yield Slot(from_seconds(current), from_seconds(end))
            current = end


class SlotSequence:
    """Restartable: every iteration walks the windows again from the start."""

    def __init__(self, windows, busy, slot_duration):
        self.windows = tuple(windows)
        self.busy = tuple(busy)
        self.slot_duration = slot_duration

    def __iter__(self):
        return generate_slots(self.windows, self.busy, self.slot_duration)


def available_slots(db: Session, doctor_id: int, on_date, slot_duration: int) -> SlotSequence:
    if slot_duration <= 0:
        raise InvalidRequest("slot_duration must be positive")
    windows = get_availability(db, doctor_id, on_date)
    busy = []
    for appointment in active_appointments(db, doctor_id, on_date):
        start = to_seconds(appointment.time)
        busy.append((start, start + appointment.duration_minutes * 60))
    return SlotSequence(windows, busy, slot_duration)

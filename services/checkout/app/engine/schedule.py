from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from services.checkout.app.models.checkout import DeliveryTier, ScheduledWindow

SCHEDULE_HORIZON_DAYS = 7


@dataclass(frozen=True, slots=True)
class TimeSlot:
    value: str
    label: str
    time: str

    @property
    def start(self) -> time:
        start, _end = self.value.split("-")
        hours, minutes = start.split(":")
        return time(int(hours), int(minutes))


TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot("09:00-12:00", "Morning", "9:00 AM - 12:00 PM"),
    TimeSlot("12:00-15:00", "Lunch", "12:00 PM - 3:00 PM"),
    TimeSlot("15:00-18:00", "Afternoon", "3:00 PM - 6:00 PM"),
    TimeSlot("18:00-21:00", "Evening", "6:00 PM - 9:00 PM"),
)


def find_slot(value: str | None) -> TimeSlot | None:
    if not value:
        return None
    return next((slot for slot in TIME_SLOTS if slot.value == value), None)


def selectable_dates(today: date) -> list[date]:
    """Dates offered by the scheduler: today through today + 7 days."""
    return [today + timedelta(days=offset) for offset in range(SCHEDULE_HORIZON_DAYS + 1)]


def is_selectable(day: date, today: date) -> bool:
    return today <= day <= today + timedelta(days=SCHEDULE_HORIZON_DAYS)


def resolve_scheduled_time(
    tier: DeliveryTier,
    window: ScheduledWindow | None,
    tz: tzinfo,
) -> datetime | None:
    """Anchor the delivery at the start of the chosen slot on the chosen day.

    Returns None for express/standard delivery, when no window was chosen, or
    when the slot is not one of TIME_SLOTS.
    """

    if tier != DeliveryTier.ECONOMY or window is None:
        return None

    slot = find_slot(window.time_slot)
    if slot is None:
        return None

    return datetime.combine(window.day, slot.start, tzinfo=tz)

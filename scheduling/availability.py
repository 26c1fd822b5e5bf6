"""
Availability generation: slicing time-slot rules into bookable cells and
computing the public booking window for a link.
"""
from collections import Counter
from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional

from scheduling import storage
from scheduling.dates import add_days, add_minutes, day_of_week, minutes_to_time, parse_date, time_to_minutes

MAX_DAYS_PER_PAGE = 30


@dataclass(frozen=True)
class AvailableSlot:
    date: str
    time: str
    end_time: str
    available: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BookingWindow:
    earliest: str
    latest: str
    view_start: str
    view_end: str
    days: int
    prev_date: Optional[str]
    next_date: Optional[str]

    @property
    def has_prev(self) -> bool:
        return self.prev_date is not None

    @property
    def has_next(self) -> bool:
        return self.next_date is not None

    def to_dict(self) -> dict:
        out = asdict(self)
        out["has_prev"] = self.has_prev
        out["has_next"] = self.has_next
        return out


def clamp_days(raw, default: int = 1, maximum: int = MAX_DAYS_PER_PAGE) -> int:
    try:
        days = int(raw)
    except (TypeError, ValueError):
        days = default
    return max(1, min(days, maximum))


def booking_window(link, today: str, requested_date: str = None, days=1,
                   max_days: int = MAX_DAYS_PER_PAGE) -> BookingWindow:
    """
    Page of ``days`` dates the public page shows, kept inside
    ``[earliest, latest]`` where earliest honours the link's minimum notice
    (never before tomorrow) and latest its maximum advance.
    """
    days = clamp_days(days, maximum=max_days)
    earliest = add_days(today, max((link.min_notice or 0) // 24, 1))
    latest = add_days(today, link.max_advance or 0)

    # ISO dates compare correctly as strings
    selected = requested_date if requested_date and parse_date(requested_date) else earliest
    if selected < earliest:
        view_start = earliest
    elif selected > latest:
        view_start = latest
    else:
        view_start = selected

    view_end = min(add_days(view_start, days - 1), latest)

    prev_date = add_days(view_start, -days)
    has_prev = prev_date >= earliest or view_start > earliest
    next_date = add_days(view_start, days)
    has_next = next_date <= latest

    return BookingWindow(
        earliest=earliest,
        latest=latest,
        view_start=view_start,
        view_end=view_end,
        days=days,
        prev_date=max(prev_date, earliest) if has_prev else None,
        next_date=next_date if has_next else None,
    )


def matching_rules(rules: Iterable, date_str: str) -> list:
    """
    Weekday rules and specific-date rules that apply to ``date_str``. When
    both kinds match the same day their cells are combined.
    """
    dow = day_of_week(date_str)
    return [r for r in rules if r.applies_to(date_str, dow)]


def cell_capacity(rules: Iterable, date_str: str, default: int = 1) -> int:
    capacities = [r.max_bookings for r in matching_rules(rules, date_str)]
    return max(capacities) if capacities else default


def iter_rule_times(rule, duration: int):
    """Start times a rule offers for bookings of ``duration`` minutes."""
    end = time_to_minutes(rule.end_time)
    step = (rule.slot_duration or 0) + (rule.buffer_time or 0)
    start = time_to_minutes(rule.start_time)
    while start + duration <= end:
        # zero-padded, matching how bookings store slot_time
        yield minutes_to_time(start)
        if step <= 0:
            return
        start += step


def available_slots(rules, bookings, duration: int, view_start: str, view_end: str) -> List[AvailableSlot]:
    """
    Every candidate cell from ``view_start`` to ``view_end`` inclusive, in
    date order, then rule order, then time. Only pending and confirmed
    bookings take capacity.
    """
    if parse_date(view_start) is None or parse_date(view_end) is None:
        return []

    taken = Counter(
        (b.slot_date, b.slot_time)
        for b in bookings
        if b.is_active
    )

    slots = []
    current = view_start
    while current <= view_end:
        for rule in matching_rules(rules, current):
            for time in iter_rule_times(rule, duration):
                slots.append(AvailableSlot(
                    date=current,
                    time=time,
                    end_time=add_minutes(time, duration),
                    available=taken[(current, time)] < rule.max_bookings,
                ))
        current = add_days(current, 1)
    return slots


def available_slots_for_link(calendar_id: str, link, view_start: str, view_end: str) -> List[AvailableSlot]:
    rules = storage.list_rules(calendar_id)
    bookings = storage.list_bookings(calendar_id, view_start, view_end)
    return available_slots(rules, bookings, link.duration, view_start, view_end)

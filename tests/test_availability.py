from models import Booking, BookingLink, TimeSlotRule
from scheduling.availability import (
    available_slots,
    booking_window,
    cell_capacity,
    clamp_days,
)

from conftest import MONDAY, TODAY, TUESDAY


def rule(**kw):
    values = dict(day_of_week=1, specific_date=None, start_time="09:00", end_time="12:00",
                  slot_duration=30, buffer_time=0, max_bookings=1)
    values.update(kw)
    return TimeSlotRule(**values)


def booking(slot_date, slot_time, status="confirmed"):
    return Booking(slot_date=slot_date, slot_time=slot_time, status=status)


def times(slots):
    return [s.time for s in slots]


def test_monday_rule_yields_six_open_cells():
    slots = available_slots([rule()], [], 30, MONDAY, MONDAY)

    assert times(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
    assert all(s.available for s in slots)
    assert all(s.date == MONDAY for s in slots)
    assert slots[-1].end_time == "12:00"


def test_buffer_time_spaces_cells():
    slots = available_slots([rule(end_time="11:00", buffer_time=15)], [], 30, MONDAY, MONDAY)
    assert times(slots) == ["09:00", "09:45", "10:30"]


def test_link_duration_longer_than_slot():
    slots = available_slots([rule()], [], 60, MONDAY, MONDAY)
    assert times(slots) == ["09:00", "09:30", "10:00", "10:30", "11:00"]
    assert slots[0].end_time == "10:00"


def test_pending_and_confirmed_take_capacity_cancelled_does_not():
    bookings = [
        booking(MONDAY, "09:00", "pending"),
        booking(MONDAY, "09:30", "confirmed"),
        booking(MONDAY, "10:00", "cancelled"),
    ]
    slots = {s.time: s.available for s in available_slots([rule()], bookings, 30, MONDAY, MONDAY)}

    assert slots["09:00"] is False
    assert slots["09:30"] is False
    assert slots["10:00"] is True


def test_capacity_above_one():
    bookings = [booking(MONDAY, "09:00")]
    slots = available_slots([rule(max_bookings=2)], bookings, 30, MONDAY, MONDAY)
    assert slots[0].available is True

    bookings.append(booking(MONDAY, "09:00", "pending"))
    slots = available_slots([rule(max_bookings=2)], bookings, 30, MONDAY, MONDAY)
    assert slots[0].available is False


def test_rules_only_apply_on_their_day():
    assert available_slots([rule()], [], 30, TUESDAY, TUESDAY) == []

    one_off = rule(day_of_week=None, specific_date=TUESDAY, start_time="14:00", end_time="15:00")
    slots = available_slots([rule(), one_off], [], 30, MONDAY, TUESDAY)
    assert [(s.date, s.time) for s in slots] == [
        (MONDAY, "09:00"), (MONDAY, "09:30"), (MONDAY, "10:00"),
        (MONDAY, "10:30"), (MONDAY, "11:00"), (MONDAY, "11:30"),
        (TUESDAY, "14:00"), (TUESDAY, "14:30"),
    ]


def test_weekday_and_specific_date_rules_are_combined():
    one_off = rule(day_of_week=None, specific_date=MONDAY, start_time="13:00", end_time="14:00")
    slots = available_slots([rule(end_time="10:00"), one_off], [], 30, MONDAY, MONDAY)
    assert times(slots) == ["09:00", "09:30", "13:00", "13:30"]


def test_generation_is_deterministic():
    rules = [rule(), rule(day_of_week=3)]
    bookings = [booking(MONDAY, "10:00")]
    first = available_slots(rules, bookings, 30, MONDAY, "2026-10-25")
    second = available_slots(rules, bookings, 30, MONDAY, "2026-10-25")
    assert first == second


def test_invalid_range_yields_nothing():
    assert available_slots([rule()], [], 30, "garbage", MONDAY) == []


def test_cell_capacity_takes_max_of_matching_rules():
    rules = [rule(max_bookings=2), rule(day_of_week=None, specific_date=MONDAY, max_bookings=5), rule(day_of_week=2, max_bookings=9)]
    assert cell_capacity(rules, MONDAY) == 5
    assert cell_capacity(rules, "2026-10-21") == 1


def test_clamp_days():
    assert clamp_days(None) == 1
    assert clamp_days("abc") == 1
    assert clamp_days("0") == 1
    assert clamp_days("7") == 7
    assert clamp_days(99) == 30


def window_link(min_notice=24, max_advance=30):
    return BookingLink(min_notice=min_notice, max_advance=max_advance)


def test_window_defaults_to_earliest_date():
    window = booking_window(window_link(), TODAY)

    assert window.earliest == "2026-10-16"
    assert window.latest == "2026-11-14"
    assert window.view_start == "2026-10-16"
    assert window.view_end == "2026-10-16"
    assert window.has_prev is False
    assert window.next_date == "2026-10-17"


def test_window_clamps_requested_date():
    assert booking_window(window_link(), TODAY, "2026-10-01").view_start == "2026-10-16"
    late = booking_window(window_link(), TODAY, "2027-01-01", days=7)
    assert late.view_start == "2026-11-14"
    assert late.view_end == "2026-11-14"
    assert late.has_next is False


def test_window_ignores_malformed_date():
    assert booking_window(window_link(), TODAY, "tomorrow").view_start == "2026-10-16"


def test_window_end_never_passes_latest():
    window = booking_window(window_link(max_advance=10), TODAY, "2026-10-22", days=7)
    assert window.view_end == "2026-10-25"
    assert window.has_next is False


def test_window_prev_link_clamps_to_earliest():
    window = booking_window(window_link(), TODAY, "2026-10-18", days=7)
    assert window.view_end == "2026-10-24"
    assert window.has_prev is True
    assert window.prev_date == "2026-10-16"
    assert window.next_date == "2026-10-25"


def test_min_notice_in_days():
    assert booking_window(window_link(min_notice=72), TODAY).earliest == "2026-10-18"
    assert booking_window(window_link(min_notice=0), TODAY).earliest == "2026-10-16"


def test_unpadded_rule_times_line_up_with_stored_bookings():
    loose = rule(start_time="9:00", end_time="10:00")
    assert loose.validate() == []

    slots = available_slots([loose], [booking(MONDAY, "09:00")], 30, MONDAY, MONDAY)

    assert [(s.time, s.available) for s in slots] == [("09:00", False), ("09:30", True)]

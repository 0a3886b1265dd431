import time
from datetime import date, datetime, timedelta, timezone

import pytest

from cabinbook.errors import InvalidArgument, NotFound
from cabinbook.services.slots import (
    AvailabilityOverrideStore,
    BookingConflictGuard,
    PricingResolver,
    Shift,
    SlotGrid,
    SlotKey,
)
from cabinbook.services.slots.store import creation_floor

from conftest import CREATED, TODAY, add_cabin


def test_list_slots_orders_by_date_then_shift(db, cabin, config):
    keys = SlotGrid(db, config).list_slots(cabin.id, date(2024, 6, 10), date(2024, 6, 11))

    assert [(k.date, k.shift) for k in keys] == [
        (date(2024, 6, 10), Shift.MORNING),
        (date(2024, 6, 10), Shift.AFTERNOON),
        (date(2024, 6, 10), Shift.EVENING),
        (date(2024, 6, 11), Shift.MORNING),
        (date(2024, 6, 11), Shift.AFTERNOON),
        (date(2024, 6, 11), Shift.EVENING),
    ]


def test_list_slots_never_before_creation_date(db, cabin, config):
    keys = SlotGrid(db, config).list_slots(cabin.id, date(2023, 12, 1), date(2024, 1, 3))

    assert keys
    assert min(k.date for k in keys) == CREATED.date()
    assert len(keys) == 3 * 3


def test_list_slots_range_entirely_before_creation_is_empty(db, cabin, config):
    assert SlotGrid(db, config).list_slots(cabin.id, date(2023, 1, 1), date(2023, 1, 31)) == []


def test_list_slots_is_restartable(db, cabin, config):
    grid = SlotGrid(db, config)
    first = grid.list_slots(cabin.id, date(2024, 6, 1), date(2024, 6, 5))
    second = grid.list_slots(cabin.id, date(2024, 6, 1), date(2024, 6, 5))
    assert first == second


def test_list_slots_unknown_cabin(db, config):
    with pytest.raises(NotFound):
        SlotGrid(db, config).list_slots(999, date(2024, 6, 1), date(2024, 6, 2))


def test_list_slots_rejects_range_beyond_horizon(db, cabin, config):
    start = date(2024, 6, 1)
    with pytest.raises(InvalidArgument):
        SlotGrid(db, config).list_slots(cabin.id, start, start + timedelta(days=config.horizon_days + 1))


def test_build_grid_cell_statuses(db, location, owner, pro, config, events):
    cabin = add_cabin(db, location, evening_enabled=False)
    day = date(2024, 6, 10)

    AvailabilityOverrideStore(db).set_manual_closure(SlotKey(cabin.id, day, "afternoon"), True, owner, TODAY)
    booking = BookingConflictGuard(db).reserve(SlotKey(cabin.id, day, "morning"), pro, 50.0, TODAY)

    cells = SlotGrid(db, config).build_grid(cabin.id, date(2024, 5, 31), day, TODAY)
    by_key = {(c.key.date, c.key.shift.value): c for c in cells}

    assert by_key[(date(2024, 5, 31), "morning")].status == "past"
    assert by_key[(day, "morning")].status == "booked"
    assert by_key[(day, "morning")].booking_id == booking.id
    assert by_key[(day, "morning")].can_toggle is False
    assert by_key[(day, "afternoon")].status == "closed"
    assert by_key[(day, "afternoon")].can_toggle is True
    assert by_key[(day, "evening")].status == "disabled"
    assert by_key[(date(2024, 6, 9), "morning")].status == "available"
    assert by_key[(date(2024, 6, 9), "morning")].is_bookable


def test_build_grid_uses_override_price(db, cabin, owner, config):
    day = date(2024, 6, 10)
    PricingResolver(db, config).set_price_override(SlotKey(cabin.id, day, "evening"), 65, owner, TODAY)

    cells = SlotGrid(db, config).build_grid(cabin.id, day, day, TODAY)

    assert [c.price for c in cells] == [50.0, 50.0, 65.0]


def test_summarize_location_counts(db, location, owner, pro, config, events):
    first = add_cabin(db, location, name="Cabin A")
    second = add_cabin(db, location, name="Cabin B", default_price=40.0)
    add_cabin(db, location, name="Cabin C", is_active=False)
    day = date(2024, 6, 10)

    BookingConflictGuard(db).reserve(SlotKey(first.id, day, "morning"), pro, 50.0, TODAY)
    AvailabilityOverrideStore(db).set_manual_closure(SlotKey(second.id, day, "evening"), True, owner, TODAY)

    summary = SlotGrid(db, config).summarize_location(location.id, day, day, TODAY)
    morning = summary[day]["morning"]
    evening = summary[day]["evening"]
    afternoon = summary[day]["afternoon"]

    assert morning.total_cabins == 2
    assert morning.booked_cabins == 1
    assert morning.available_cabins == 1
    assert morning.min_price == 40.0
    assert evening.manually_closed_count == 1
    assert evening.min_price == 50.0
    assert afternoon.available_cabins == 2
    assert afternoon.min_price == 40.0


def test_summarize_location_skips_cabin_before_creation(db, location, config):
    add_cabin(db, location, name="Old")
    add_cabin(db, location, name="New", created_at=CREATED.replace(month=6, day=5))

    summary = SlotGrid(db, config).summarize_location(location.id, date(2024, 6, 4), date(2024, 6, 5), TODAY)

    assert summary[date(2024, 6, 4)]["morning"].total_cabins == 1
    assert summary[date(2024, 6, 5)]["morning"].total_cabins == 2


@pytest.fixture
def local_tz_minus_3(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "BRT3")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_creation_floor_uses_local_calendar_date(db, location, config, local_tz_minus_3):
    # 01:30 UTC on Jan 2 is still Jan 1 at UTC-3
    cabin = add_cabin(db, location, name="Late", created_at=datetime(2024, 1, 2, 1, 30))

    assert creation_floor(cabin) == date(2024, 1, 1)
    keys = SlotGrid(db, config).list_slots(cabin.id, date(2023, 12, 30), date(2024, 1, 2))
    assert keys[0].date == date(2024, 1, 1)


def test_creation_floor_accepts_aware_timestamps(db, location, local_tz_minus_3):
    cabin = add_cabin(db, location, name="Aware")
    cabin.created_at = datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc)

    assert creation_floor(cabin) == date(2024, 2, 29)

import threading
from datetime import date

import pytest

from cabinbook.auth import ANONYMOUS, Actor
from cabinbook.errors import (
    Conflict,
    InvalidArgument,
    InvalidState,
    NotFound,
    PermissionDenied,
    SlotUnavailable,
    Unauthorized,
)
from cabinbook.models import Bookings
from cabinbook.services.slots import ACTIVE_STATUSES, AvailabilityOverrideStore, BookingConflictGuard, SlotKey

from conftest import TODAY, add_cabin

DAY = date(2024, 6, 10)


def test_reserve_creates_payment_pending_booking(db, cabin, pro, events):
    booking = BookingConflictGuard(db).reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)

    assert booking.id is not None
    assert booking.status == "payment_pending"
    assert booking.price == 50.0
    assert booking.professional_id == pro.id
    assert events[-1][0] == "booking_created"
    assert events[-1][1]["booking_id"] == booking.id


def test_reserve_unknown_cabin_before_identity(db):
    # NotFound wins over Unauthorized
    with pytest.raises(NotFound):
        BookingConflictGuard(db).reserve(SlotKey(999, DAY, "morning"), ANONYMOUS, 50.0, TODAY)


@pytest.mark.parametrize("actor", [ANONYMOUS, Actor(id="owner-1", role="owner"), Actor(id="x", role=None)])
def test_reserve_requires_professional(db, cabin, actor):
    with pytest.raises(Unauthorized):
        BookingConflictGuard(db).reserve(SlotKey(cabin.id, DAY, "morning"), actor, 50.0, TODAY)


def test_unauthorized_before_slot_unavailable(db, cabin):
    with pytest.raises(Unauthorized):
        BookingConflictGuard(db).reserve(SlotKey(cabin.id, date(2024, 5, 1), "morning"), ANONYMOUS, 50.0, TODAY)


def test_reserve_slot_unavailable_cases(db, location, owner, pro):
    cabin = add_cabin(db, location, evening_enabled=False)
    guard = BookingConflictGuard(db)
    AvailabilityOverrideStore(db).set_manual_closure(SlotKey(cabin.id, DAY, "afternoon"), True, owner, TODAY)

    for key, today in [
        (SlotKey(cabin.id, date(2024, 5, 30), "morning"), TODAY),  # past
        (SlotKey(cabin.id, date(2023, 12, 31), "morning"), date(2023, 12, 1)),  # before creation
        (SlotKey(cabin.id, DAY, "evening"), TODAY),  # disabled
        (SlotKey(cabin.id, DAY, "afternoon"), TODAY),  # closed
    ]:
        with pytest.raises(SlotUnavailable):
            guard.reserve(key, pro, 50.0, today)

    assert db.query(Bookings).count() == 0


def test_reserve_inactive_cabin_is_unavailable(db, location, pro):
    cabin = add_cabin(db, location, is_active=False)
    with pytest.raises(SlotUnavailable):
        BookingConflictGuard(db).reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)


def test_second_reserve_conflicts(db, cabin, pro, pro_q, events):
    guard = BookingConflictGuard(db)
    key = SlotKey(cabin.id, DAY, "morning")
    guard.reserve(key, pro, 50.0, TODAY)

    with pytest.raises(Conflict) as exc:
        guard.reserve(key, pro_q, 50.0, TODAY)

    assert exc.value.holder_id == pro.id
    assert db.query(Bookings).count() == 1


def test_reserve_rejects_non_positive_price(db, cabin, pro):
    with pytest.raises(InvalidArgument):
        BookingConflictGuard(db).reserve(SlotKey(cabin.id, DAY, "morning"), pro, 0, TODAY)


def test_unique_index_blocks_second_active_row(db, cabin, pro, pro_q, events, monkeypatch):
    """A stale pre-insert read still ends in Conflict: the store refuses the duplicate."""
    from cabinbook.services.slots import guard as guard_module

    guard = BookingConflictGuard(db)
    key = SlotKey(cabin.id, DAY, "evening")
    guard.reserve(key, pro, 50.0, TODAY)

    original = guard_module.get_active_booking
    calls = []

    def stale_read(session, slot):
        calls.append(slot)
        return None if len(calls) == 1 else original(session, slot)

    monkeypatch.setattr(guard_module, "get_active_booking", stale_read)

    with pytest.raises(Conflict) as exc:
        guard.reserve(key, pro_q, 50.0, TODAY)

    assert len(calls) == 2
    assert exc.value.holder_id == pro.id
    assert db.query(Bookings).filter(Bookings.status.in_(ACTIVE_STATUSES)).count() == 1


def test_concurrent_reserves_exactly_one_wins(session_factory, cabin, events):
    attempts = 8
    key = SlotKey(cabin.id, DAY, "morning")
    barrier = threading.Barrier(attempts)
    outcomes = []
    lock = threading.Lock()

    def attempt(n):
        session = session_factory()
        actor = Actor(id=f"pro-{n}", role="professional")
        try:
            barrier.wait()
            BookingConflictGuard(session).reserve(key, actor, 50.0, TODAY)
            result = "ok"
        except Conflict:
            result = "conflict"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(n,)) for n in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict"] * (attempts - 1) + ["ok"]

    check = session_factory()
    try:
        active = check.query(Bookings).filter(Bookings.status.in_(ACTIVE_STATUSES)).count()
    finally:
        check.close()
    assert active == 1


def test_cancel_frees_slot(db, cabin, pro, pro_q, events):
    guard = BookingConflictGuard(db)
    key = SlotKey(cabin.id, DAY, "morning")
    booking = guard.reserve(key, pro, 50.0, TODAY)

    cancelled = guard.cancel(booking.id, pro, "plans changed")
    again = guard.reserve(key, pro_q, 50.0, TODAY)

    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_by == pro.id
    assert cancelled.cancel_reason == "plans changed"
    assert again.professional_id == pro_q.id
    assert [e[0] for e in events] == ["booking_created", "booking_cancelled", "booking_created"]


def test_owner_can_cancel(db, cabin, owner, pro, events):
    guard = BookingConflictGuard(db)
    booking = guard.reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)

    assert guard.cancel(booking.id, owner).cancelled_by == owner.id


def test_cancel_permissions_and_state(db, cabin, pro, pro_q, events):
    guard = BookingConflictGuard(db)
    booking = guard.reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)

    with pytest.raises(NotFound):
        guard.cancel(12345, pro)
    with pytest.raises(Unauthorized):
        guard.cancel(booking.id, ANONYMOUS)
    with pytest.raises(PermissionDenied):
        guard.cancel(booking.id, pro_q)

    guard.cancel(booking.id, pro)
    with pytest.raises(InvalidState):
        guard.cancel(booking.id, pro)


def test_advance_status_payment_lifecycle(db, cabin, pro, events):
    guard = BookingConflictGuard(db)
    booking = guard.reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)

    assert guard.advance_status(booking.id, "confirmed").status == "confirmed"
    # re-applying is a no-op
    assert guard.advance_status(booking.id, "confirmed").status == "confirmed"
    assert events[-1][0] == "booking_status_changed"
    assert events[-1][1]["previous"] == "payment_pending"

    with pytest.raises(InvalidState):
        guard.advance_status(booking.id, "payment_pending")
    with pytest.raises(InvalidState):
        guard.advance_status(booking.id, "cancelled")
    with pytest.raises(InvalidArgument):
        guard.advance_status(booking.id, "refunded")


def test_cancelled_booking_cannot_advance(db, cabin, pro, events):
    guard = BookingConflictGuard(db)
    booking = guard.reserve(SlotKey(cabin.id, DAY, "morning"), pro, 50.0, TODAY)
    guard.cancel(booking.id, pro)

    with pytest.raises(InvalidState):
        guard.advance_status(booking.id, "confirmed")


def test_list_bookings_filters_and_order(db, location, pro, pro_q, events):
    first = add_cabin(db, location, name="A")
    second = add_cabin(db, location, name="B")
    guard = BookingConflictGuard(db)
    evening = guard.reserve(SlotKey(first.id, DAY, "evening"), pro, 50.0, TODAY)
    morning = guard.reserve(SlotKey(second.id, DAY, "morning"), pro, 50.0, TODAY)
    earlier = guard.reserve(SlotKey(first.id, date(2024, 6, 9), "afternoon"), pro, 50.0, TODAY)
    other = guard.reserve(SlotKey(first.id, DAY, "morning"), pro_q, 50.0, TODAY)
    guard.cancel(earlier.id, pro)

    mine = guard.list_bookings(professional_id=pro.id)
    assert [b.id for b in mine] == [earlier.id, morning.id, evening.id]

    active = guard.list_bookings(professional_id=pro.id, active_only=True)
    assert [b.id for b in active] == [morning.id, evening.id]

    on_first = guard.list_bookings(cabin_id=first.id, date_from=DAY, date_to=DAY)
    assert [b.id for b in on_first] == [other.id, evening.id]


@pytest.mark.parametrize("price", [0.004, 0.001, None, float("nan")])
def test_reserve_rejects_price_that_rounds_to_zero(db, cabin, pro, price):
    with pytest.raises(InvalidArgument):
        BookingConflictGuard(db).reserve(SlotKey(cabin.id, DAY, "morning"), pro, price, TODAY)
    assert db.query(Bookings).count() == 0


def test_index_violation_without_visible_winner_is_conflict(db, cabin, pro, pro_q, events, monkeypatch):
    """The competing booking is gone by the time of the re-read: still a Conflict, not a raw store error."""
    from cabinbook.services.slots import guard as guard_module

    guard = BookingConflictGuard(db)
    key = SlotKey(cabin.id, DAY, "morning")
    guard.reserve(key, pro, 50.0, TODAY)

    monkeypatch.setattr(guard_module, "get_active_booking", lambda session, slot: None)

    with pytest.raises(Conflict) as exc:
        guard.reserve(key, pro_q, 50.0, TODAY)

    assert exc.value.holder_id is None
    assert db.query(Bookings).count() == 1

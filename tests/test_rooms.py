"""Tests for room feasibility filtering."""

from datetime import datetime, timezone

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from scheduling_core.models import Booking, BookingStatus, Room, TimeInterval
from scheduling_core.rooms import RoomRejectionReason, filter_rooms


def _utc(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def slot():
    return TimeInterval(_utc(10), _utc(11))


def _room(room_id, capacity, bookings=(), **kwargs):
    return Room(id=room_id, name=room_id.title(), capacity=capacity, bookings=list(bookings), **kwargs)


def _reservation(booking_id, start, end, **kwargs):
    return Booking(id=booking_id, start=start, end=end, **kwargs)


# ── Capacity ───────────────────────────────────────────────────────


class TestCapacity:
    def test_too_small_room_excluded(self, slot):
        result = filter_rooms([_room("huddle", 8)], slot, 10)
        assert result.feasible == []
        assert result.rejections["huddle"].reasons == [RoomRejectionReason.INSUFFICIENT_CAPACITY]

    def test_exact_capacity_fits(self, slot):
        assert filter_rooms([_room("board", 10)], slot, 10).feasible_ids == ["board"]

    def test_best_fit_first(self, slot):
        rooms = [_room("hall", 20), _room("board", 10), _room("studio", 12), _room("alpha", 12)]
        result = filter_rooms(rooms, slot, 10)
        assert result.feasible_ids == ["board", "alpha", "studio", "hall"]


# ── Bookings ───────────────────────────────────────────────────────


class TestRoomBookings:
    def test_one_minute_overlap_blocks(self, slot):
        room = _room("board", 10, [_reservation("r1", _utc(10, 59), _utc(12))])
        result = filter_rooms([room], slot, 4)
        assert result.feasible == []
        rejection = result.rejections["board"]
        assert rejection.reasons == [RoomRejectionReason.BOOKED]
        assert rejection.conflicting_booking_ids == ["r1"]

    def test_touching_reservation_is_fine(self, slot):
        room = _room("board", 10, [
            _reservation("before", _utc(9), _utc(10)),
            _reservation("after", _utc(11), _utc(12)),
        ])
        assert filter_rooms([room], slot, 4).feasible_ids == ["board"]

    def test_cancelled_reservation_ignored(self, slot):
        room = _room("board", 10, [
            _reservation("r1", _utc(10), _utc(11), status=BookingStatus.CANCELLED),
        ])
        assert filter_rooms([room], slot, 4).feasible_ids == ["board"]

    def test_own_reservation_excluded_when_editing(self, slot):
        room = _room("board", 10, [_reservation("mine", _utc(10), _utc(11))])
        assert filter_rooms([room], slot, 4).feasible == []
        assert filter_rooms([room], slot, 4, exclude_booking_id="mine").feasible_ids == ["board"]

    def test_all_reasons_listed(self, slot):
        room = _room("closet", 2, [_reservation("r1", _utc(10), _utc(10, 30))])
        rejection = filter_rooms([room], slot, 6).rejections["closet"]
        assert rejection.reasons == [
            RoomRejectionReason.INSUFFICIENT_CAPACITY,
            RoomRejectionReason.BOOKED,
        ]


# ── Amenities and service state ────────────────────────────────────


class TestAmenities:
    def test_required_amenities_case_insensitive(self, slot):
        room = _room("board", 10, amenities={"Projector", "whiteboard"})
        result = filter_rooms([room], slot, 4, required_amenities=["projector", " WHITEBOARD "])
        assert result.feasible_ids == ["board"]

    def test_missing_amenities_reported(self, slot):
        room = _room("board", 10, amenities={"whiteboard"})
        result = filter_rooms([room], slot, 4, required_amenities=["projector", "video"])
        rejection = result.rejections["board"]
        assert rejection.reasons == [RoomRejectionReason.MISSING_AMENITIES]
        assert rejection.missing_amenities == ["projector", "video"]

    def test_out_of_service(self, slot):
        room = _room("board", 10, active=False)
        rejection = filter_rooms([room], slot, 4).rejections["board"]
        assert rejection.reasons == [RoomRejectionReason.OUT_OF_SERVICE]


class TestEmpty:
    def test_no_rooms(self, slot):
        result = filter_rooms([], slot, 4)
        assert result.feasible == []
        assert result.rejections == {}

    def test_every_room_accounted_for(self, slot):
        rooms = [
            _room("a", 2),
            _room("b", 10),
            _room("c", 10, [_reservation("r1", _utc(10), _utc(11))]),
        ]
        result = filter_rooms(rooms, slot, 4)
        assert sorted(result.feasible_ids + list(result.rejections)) == ["a", "b", "c"]

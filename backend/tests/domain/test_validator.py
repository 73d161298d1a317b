from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from marina.domain.errors import ErrorCode
from marina.domain.validator import ReservationRequest, overlaps, validate_reservation
from marina.models import Reservation

NOW = datetime(2026, 3, 1, 9, 0, 0)


def _request(**overrides: Any) -> ReservationRequest:
    fields: dict[str, Any] = {
        "catway_number": 7,
        "client_name": "Jane Doe",
        "boat_name": "Sea Breeze",
        "check_in": "2026-03-10T12:00:00",
        "check_out": "2026-03-12T12:00:00",
    }
    fields.update(overrides)
    return ReservationRequest(**fields)


def _existing(check_in: str, check_out: str, catway_number: int = 7) -> Reservation:
    return Reservation(
        id=1,
        catway_number=catway_number,
        client_name="John Smith",
        boat_name="Albatross",
        check_in=datetime.fromisoformat(check_in),
        check_out=datetime.fromisoformat(check_out),
        created_at=NOW,
        updated_at=NOW,
    )


def test_valid_request_produces_normalised_draft() -> None:
    decision = validate_reservation(_request(client_name="  Jane Doe "), [], now=NOW)
    assert decision.ok
    assert decision.reason is None
    assert decision.draft is not None
    assert decision.draft.client_name == "Jane Doe"
    assert decision.draft.check_in == datetime(2026, 3, 10, 12, 0)
    assert decision.draft.catway_number == 7


@pytest.mark.parametrize("field", ["client_name", "boat_name", "check_in", "check_out", "catway_number"])
def test_missing_field_is_rejected(field: str) -> None:
    decision = validate_reservation(_request(**{field: None}), [], now=NOW)
    assert not decision.ok
    assert decision.reason == ErrorCode.MISSING_FIELDS


def test_blank_name_counts_as_missing() -> None:
    decision = validate_reservation(_request(boat_name="   "), [], now=NOW)
    assert decision.reason == ErrorCode.MISSING_FIELDS


@pytest.mark.parametrize("number", [0, -3, "abc", True])
def test_non_positive_catway_number_is_rejected(number: object) -> None:
    decision = validate_reservation(_request(catway_number=number), [], now=NOW)
    assert decision.reason == ErrorCode.MISSING_FIELDS


def test_unparseable_date_is_rejected() -> None:
    decision = validate_reservation(_request(check_in="next tuesday"), [], now=NOW)
    assert decision.reason == ErrorCode.INVALID_DATE


def test_zero_length_range_is_rejected() -> None:
    decision = validate_reservation(
        _request(check_in="2026-03-10T12:00:00", check_out="2026-03-10T12:00:00"), [], now=NOW
    )
    assert decision.reason == ErrorCode.INVALID_RANGE


def test_inverted_range_is_rejected() -> None:
    decision = validate_reservation(
        _request(check_in="2026-03-12T12:00:00", check_out="2026-03-10T12:00:00"), [], now=NOW
    )
    assert decision.reason == ErrorCode.INVALID_RANGE


def test_check_in_in_past_is_rejected() -> None:
    decision = validate_reservation(
        _request(check_in="2026-02-27T12:00:00", check_out="2026-03-02T12:00:00"), [], now=NOW
    )
    assert decision.reason == ErrorCode.CHECK_IN_IN_PAST


def test_overlap_is_rejected_and_reports_conflicting_booking() -> None:
    existing = _existing("2026-03-11T00:00:00", "2026-03-15T00:00:00")
    decision = validate_reservation(_request(), [existing], now=NOW)
    assert decision.reason == ErrorCode.OVERLAP_CONFLICT
    assert decision.conflicting is existing
    assert decision.draft is None


def test_back_to_back_bookings_are_accepted() -> None:
    before = _existing("2026-03-08T12:00:00", "2026-03-10T12:00:00")
    after = _existing("2026-03-12T12:00:00", "2026-03-14T12:00:00")
    decision = validate_reservation(_request(), [before, after], now=NOW)
    assert decision.ok


def test_bookings_on_other_catways_are_ignored() -> None:
    elsewhere = _existing("2026-03-09T00:00:00", "2026-03-20T00:00:00", catway_number=8)
    assert validate_reservation(_request(), [elsewhere], now=NOW).ok


def test_range_is_checked_before_the_past() -> None:
    # inverted and in the past: the range rule comes first
    decision = validate_reservation(
        _request(check_in="2026-01-05T00:00:00", check_out="2026-01-01T00:00:00"), [], now=NOW
    )
    assert decision.reason == ErrorCode.INVALID_RANGE


def test_missing_fields_win_over_invalid_dates() -> None:
    decision = validate_reservation(_request(client_name="", check_in="garbage"), [], now=NOW)
    assert decision.reason == ErrorCode.MISSING_FIELDS


def test_aware_timestamps_are_normalised_to_utc() -> None:
    decision = validate_reservation(
        _request(check_in="2026-03-10T14:00:00+02:00", check_out="2026-03-11T00:00:00Z"), [], now=NOW
    )
    assert decision.ok and decision.draft is not None
    assert decision.draft.check_in == datetime(2026, 3, 10, 12, 0)
    assert decision.draft.check_out == datetime(2026, 3, 11, 0, 0)


@pytest.mark.parametrize(
    ("check_in", "check_out"),
    [
        ("2026-03-10T12:00:00", "9999-12-31T23:59:59-01:00"),
        ("0001-01-01T00:00:00+01:00", "2026-03-12T12:00:00"),
        (
            "2026-03-10T12:00:00",
            datetime(9999, 12, 31, 23, 59, tzinfo=timezone(timedelta(hours=-1))),
        ),
    ],
)
def test_offset_beyond_datetime_range_is_an_invalid_date(check_in: Any, check_out: Any) -> None:
    decision = validate_reservation(_request(check_in=check_in, check_out=check_out), [], now=NOW)
    assert not decision.ok
    assert decision.reason == ErrorCode.INVALID_DATE


def test_datetime_values_are_accepted() -> None:
    check_in = datetime(2026, 3, 10, 12, tzinfo=timezone.utc)
    decision = validate_reservation(
        _request(check_in=check_in, check_out=check_in + timedelta(days=1)), [], now=NOW
    )
    assert decision.ok


def test_overlaps_is_half_open() -> None:
    booking = _existing("2026-03-10T00:00:00", "2026-03-12T00:00:00")
    assert overlaps(booking, datetime(2026, 3, 11), datetime(2026, 3, 13))
    assert overlaps(booking, datetime(2026, 3, 9), datetime(2026, 3, 14))
    assert not overlaps(booking, datetime(2026, 3, 12), datetime(2026, 3, 13))
    assert not overlaps(booking, datetime(2026, 3, 8), datetime(2026, 3, 10))

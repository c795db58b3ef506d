"""Tests for seat-quantity extraction."""

import pytest

from conftest import FakeProvider

from cal_seats.errors import ProviderError, UpstreamError
from cal_seats.extraction import (
    clamp_seats,
    deep_find_seats,
    extract_direct,
    resolve_quantity,
    to_int,
    unwrap_booking,
)


# ── Scalars ────────────────────────────────────────────────────────

class TestToInt:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (4, 4),
            ("4", 4),
            (" 7 people", 7),
            ("-3", -3),
            (3.9, 3),
            ("abc", None),
            (None, None),
            (True, None),
            ([], None),
            ({}, None),
            (float("nan"), None),
        ],
    )
    def test_parse(self, value, expected):
        assert to_int(value) == expected


class TestClamp:
    def test_bounds(self):
        assert clamp_seats(-10) == 1
        assert clamp_seats(0) == 1
        assert clamp_seats(1) == 1
        assert clamp_seats(15) == 15
        assert clamp_seats(16) == 15
        assert clamp_seats(10**9) == 15

    def test_custom_maximum(self):
        assert clamp_seats(9, maximum=5) == 5

    @pytest.mark.parametrize(
        "raw",
        [-100, -1, 0, 1, 7, 15, 16, 10**9, "abc", "-3", "20 places", 3.9, None, True, [], {}, {"value": 99}],
    )
    async def test_resolved_quantity_always_in_range(self, raw):
        resolution = await resolve_quantity({"bookingFieldsResponses": {"places": raw}})
        assert 1 <= resolution.qty <= 15


# ── Steps a–c ──────────────────────────────────────────────────────

class TestExtractDirect:
    def test_places_field(self):
        assert extract_direct({"bookingFieldsResponses": {"places": 4}}) == 4

    def test_french_participant_field(self):
        assert extract_direct({"bookingFieldsResponses": {"nombre_de_participants": "3"}}) == 3

    def test_places_wins_over_other_names(self):
        record = {"bookingFieldsResponses": {"nombre_de_participants": 2, "places": 5}}
        assert extract_direct(record) == 5

    def test_key_scan_is_case_insensitive(self):
        assert extract_direct({"bookingFieldsResponses": {"Nombre-De-Places": 6}}) == 6

    def test_value_object_is_unwrapped(self):
        record = {"bookingFieldsResponses": {"places": {"label": "Places", "value": "3"}}}
        assert extract_direct(record) == 3

    def test_responses_list(self):
        record = {"responses": [{"label": "Nom", "value": "Camille"}, {"key": "places", "value": 2}]}
        assert extract_direct(record) == 2

    def test_form_responses_list_answer_field(self):
        record = {"formResponses": [{"question": "Combien de places ?", "answer": "5"}]}
        assert extract_direct(record) == 5

    def test_value_fields_in_priority_order(self):
        record = {"responses": [{"id": "places", "answer": "8", "number": 3}]}
        assert extract_direct(record) == 8

    def test_list_entry_without_value_keeps_scanning(self):
        record = {
            "responses": [{"name": "places"}],
            "formResponses": [{"name": "places", "number": 4}],
        }
        assert extract_direct(record) == 4

    def test_nothing_found(self):
        assert extract_direct({"bookingFieldsResponses": {"name": "Camille"}}) is None
        assert extract_direct({}) is None

    def test_responses_as_mapping_is_ignored_by_list_scan(self):
        assert extract_direct({"responses": {"places": 3}}) is None


# ── Step e ─────────────────────────────────────────────────────────

class TestDeepFind:
    def test_nested_participant_count(self):
        assert deep_find_seats({"details": {"participant_count": 7}}) == 7

    def test_inside_lists(self):
        assert deep_find_seats({"a": [{"b": [{"nbPlaces": "2"}]}]}) == 2

    def test_non_numeric_values_skipped(self):
        assert deep_find_seats({"placeholder": "Your name", "x": {"participants": "many"}}) is None

    def test_nothing(self):
        assert deep_find_seats({"uid": "x", "attendees": [{"email": "a@b.c"}]}) is None


# ── Full chain ─────────────────────────────────────────────────────

class TestResolveQuantity:
    async def test_direct(self):
        resolution = await resolve_quantity({"bookingFieldsResponses": {"places": 4}})
        assert (resolution.qty, resolution.source) == (4, "direct")

    async def test_direct_is_clamped(self):
        resolution = await resolve_quantity({"bookingFieldsResponses": {"places": 40}})
        assert resolution.qty == 15

    async def test_deep_fallback(self):
        record = {"uid": "bk_1", "details": {"participant_count": 7}}
        resolution = await resolve_quantity(record)
        assert (resolution.qty, resolution.source) == (7, "deep")

    async def test_default_is_one(self):
        resolution = await resolve_quantity({"uid": "bk_1"})
        assert (resolution.qty, resolution.source) == (1, "default")

    async def test_direct_hit_skips_detail_fetch(self):
        provider = FakeProvider(detail={"bookingFieldsResponses": {"places": 9}})
        resolution = await resolve_quantity({"uid": "bk_1", "bookingFieldsResponses": {"places": 3}}, provider)
        assert resolution.qty == 3
        assert provider.fetched == []

    async def test_detail_fetch_fills_gap(self):
        provider = FakeProvider(detail={"uid": "bk_1", "bookingFieldsResponses": {"places": {"value": 5}}})
        resolution = await resolve_quantity({"uid": "bk_1", "bookingFieldsResponses": {}}, provider)
        assert (resolution.qty, resolution.source) == (5, "detail")
        assert provider.fetched == ["bk_1"]

    async def test_detail_record_is_deep_scanned(self):
        provider = FakeProvider(detail={"uid": "bk_1", "extra": {"participants": 3}})
        resolution = await resolve_quantity({"uid": "bk_1"}, provider)
        assert (resolution.qty, resolution.source) == (3, "deep")

    async def test_numeric_id_used_without_uid(self):
        provider = FakeProvider()
        await resolve_quantity({"id": 1234}, provider)
        assert provider.fetched == ["1234"]

    async def test_no_identifier_no_fetch(self):
        provider = FakeProvider()
        resolution = await resolve_quantity({"bookingFieldsResponses": {}}, provider)
        assert resolution.qty == 1
        assert provider.fetched == []

    async def test_detail_fetch_failure_is_upstream_error(self):
        provider = FakeProvider(detail_error=ProviderError(404, "Booking not found"))
        with pytest.raises(UpstreamError) as exc_info:
            await resolve_quantity({"uid": "bk_1"}, provider)
        assert exc_info.value.status == 404
        assert exc_info.value.error == "fetch failed"

    async def test_custom_maximum(self):
        resolution = await resolve_quantity({"bookingFieldsResponses": {"places": 12}}, maximum=10)
        assert resolution.qty == 10


class TestUnwrapBooking:
    def test_data_wrapper(self):
        assert unwrap_booking({"status": "success", "data": {"uid": "a"}}) == {"uid": "a"}

    def test_booking_wrapper(self):
        assert unwrap_booking({"booking": {"uid": "a"}}) == {"uid": "a"}

    def test_nested_wrappers(self):
        assert unwrap_booking({"data": {"booking": {"uid": "a"}}}) == {"uid": "a"}

    def test_list_takes_first(self):
        assert unwrap_booking({"data": [{"uid": "a"}, {"uid": "b"}]}) == {"uid": "a"}

    def test_bare_record(self):
        assert unwrap_booking({"uid": "a", "start": "x"}) == {"uid": "a", "start": "x"}

    def test_garbage(self):
        assert unwrap_booking("nope") == {}
        assert unwrap_booking(None) == {}
        assert unwrap_booking([]) == {}


class TestResolveQuantityWithDetail:
    """Webhook payload fields still count once a detail record has been fetched."""

    async def test_payload_deep_scan_survives_detail_fetch(self):
        provider = FakeProvider(detail={"uid": "bk_1", "status": "accepted"})
        record = {"uid": "bk_1", "details": {"participant_count": 7}}

        resolution = await resolve_quantity(record, provider)

        assert (resolution.qty, resolution.source) == (7, "deep")
        assert provider.fetched == ["bk_1"]

    async def test_payload_deep_scan_wins_over_detail(self):
        provider = FakeProvider(detail={"uid": "bk_1", "extra": {"participants": 3}})
        resolution = await resolve_quantity({"uid": "bk_1", "details": {"participant_count": 5}}, provider)
        assert resolution.qty == 5


class TestSeatCap:
    async def test_larger_maximum_cannot_lift_cap(self):
        resolution = await resolve_quantity({"bookingFieldsResponses": {"places": 40}}, maximum=50)
        assert resolution.qty == 15

    def test_clamp_ignores_larger_maximum(self):
        assert clamp_seats(40, maximum=50) == 15

    def test_zero_maximum_still_one_seat(self):
        assert clamp_seats(4, maximum=0) == 1


class TestAnswerValuePriority:
    def test_first_non_null_value_decides(self):
        record = {"responses": [{"label": "places", "value": "beaucoup", "number": 3}]}
        assert extract_direct(record) is None

    async def test_unparsable_answer_defaults_to_one(self):
        record = {"responses": [{"label": "places", "value": "beaucoup", "number": 3}]}
        resolution = await resolve_quantity(record)
        assert resolution.qty == 1

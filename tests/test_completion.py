"""Tests for completion percentage and missing-field ordering."""

import pytest

from repairline.conversation.completion import (
    completion_percentage,
    is_complete,
    missing_fields,
    missing_required,
)
from tests.conftest import make_slots


class TestCompletionPercentage:
    def test_empty(self):
        assert completion_percentage({}) == 0

    def test_full(self):
        assert completion_percentage(make_slots()) == 100

    @pytest.mark.parametrize(
        "present, expected",
        [(1, 11), (2, 22), (3, 33), (4, 44), (5, 56), (6, 67), (7, 78), (8, 89)],
    )
    def test_rounding(self, present, expected):
        full = make_slots()
        names = list(full)[:present]
        assert completion_percentage({k: full[k] for k in names}) == expected

    def test_empty_strings_do_not_count(self):
        assert completion_percentage({"appliance_type": "", "city": None}) == 0

    def test_optional_fields_ignored(self):
        assert completion_percentage({"issue_location": "front", "last_confirmation": "yes"}) == 0

    def test_city_and_zip_counted_separately(self):
        assert completion_percentage({"city": "Springfield"}) == 11
        assert completion_percentage({"city": "Springfield", "zip_code": "62701"}) == 22


class TestMissingFields:
    def test_order_on_empty(self):
        assert missing_fields({}) == [
            "appliance_type",
            "issue_description",
            "appliance_make",
            "customer_name",
            "street_address",
            "location",
            "callback_number",
            "preferred_time",
        ]

    def test_location_collapses_city_and_zip(self):
        assert missing_fields(make_slots(city=None, zip_code=None)) == ["location"]

    def test_location_missing_when_only_zip_missing(self):
        assert missing_fields(make_slots(zip_code=None)) == ["location"]

    def test_nothing_missing(self):
        assert missing_fields(make_slots()) == []
        assert is_complete(make_slots())

    def test_missing_required_keeps_city_and_zip(self):
        assert missing_required(make_slots(city=None, zip_code=None)) == ["city", "zip_code"]

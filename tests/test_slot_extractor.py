"""Tests for keyword and pattern slot extraction."""

import pytest

from repairline.conversation.slot_extractor import (
    extract,
    extract_address,
    extract_callback_number,
    extract_city_zip,
    extract_name,
    extract_preferred_time,
)


class TestCategoryMatching:
    def test_samsung_washer_leaking(self):
        slots = extract("My Samsung washer is leaking", {})
        assert slots == {
            "appliance_type": "washer",
            "appliance_make": "Samsung",
            "issue_description": "leaking",
            "completion_percentage": 33,
        }

    def test_washing_machine_maps_to_washer(self):
        assert extract("the washing machine stopped")["appliance_type"] == "washer"

    def test_fridge_maps_to_refrigerator(self):
        assert extract("my fridge is warm")["appliance_type"] == "refrigerator"

    def test_dishwasher_resolves_to_washer_first(self):
        # "dishwasher" contains "washer", which is listed first
        assert extract("my dishwasher is broken")["appliance_type"] == "washer"

    def test_make_is_capitalized(self):
        assert extract("it's a whirlpool")["appliance_make"] == "Whirlpool"

    def test_general_electric_maps_to_ge(self):
        assert extract("a general electric oven")["appliance_make"] == "Ge"

    def test_issue_synonym(self):
        assert extract("it won't drain at all")["issue_description"] == "not_draining"
        assert extract("there's standing water inside")["issue_description"] == "not_draining"

    def test_flooding_is_leaking(self):
        assert extract("water everywhere, it's flooding")["issue_description"] == "leaking"


class TestNameExtraction:
    def test_signal_phrase(self):
        assert extract_name("My name is Jane Doe") == "Jane Doe"

    def test_im_signal_single_word(self):
        assert extract_name("I'm Maria") == "Maria"

    def test_bare_two_words(self):
        assert extract_name("John Smith") == "John Smith"

    def test_too_long_rejected(self):
        long_name = "I'm " + "a" * 30 + " " + "b" * 30
        assert extract_name(long_name) is None

    def test_no_name(self):
        assert extract_name("my washer is leaking") is None

    # Known-permissive templates, pinned so changes are deliberate

    def test_known_permissive_any_two_word_message(self):
        assert extract_name("Washer broken") == "Washer broken"

    def test_known_permissive_hi_prefix(self):
        assert extract_name("hi there friend") == "there friend"


class TestStructuralMatchers:
    def test_address_with_street_suffix(self):
        assert extract_address("I live at 42 Elm Street") == "42 Elm Street"

    def test_address_signal_phrase(self):
        assert extract_address("my address is Rural Route Nine, Springfield") == "Rural Route Nine"

    def test_address_too_short_rejected(self):
        assert extract_address("address is A") is None

    def test_city_and_zip(self):
        assert extract_city_zip("Springfield, 62701") == ("Springfield", "62701")

    def test_city_zip_sets_both_slots(self):
        slots = extract("Springfield, 62701")
        assert slots["city"] == "Springfield"
        assert slots["zip_code"] == "62701"

    def test_phone_dashes(self):
        assert extract_callback_number("call 555-123-4567") == "+15551234567"

    def test_phone_parentheses(self):
        assert extract_callback_number("(555) 123-4567") == "+15551234567"

    def test_no_phone(self):
        assert extract_callback_number("call me later") is None


class TestPreferredTime:
    def test_clock_time_kept_as_written(self):
        assert extract_preferred_time("10 am works") == "10 am"

    def test_part_of_day(self):
        assert extract_preferred_time("Tomorrow afternoon") == "afternoon"

    def test_relative_day(self):
        assert extract_preferred_time("sometime next week") == "next week"

    @pytest.mark.parametrize("text", ["ASAP please", "it's an emergency", "right away"])
    def test_urgent_words(self, text):
        assert extract_preferred_time(text) == "urgent"


class TestConfirmationAndLocation:
    def test_yes(self):
        assert extract("yes")["last_confirmation"] == "yes"

    def test_no(self):
        assert extract("nope")["last_confirmation"] == "no"

    def test_issue_location_needs_water_mention(self):
        slots = extract("water leaking from underneath")
        assert slots["issue_location"] == "bottom"

    def test_issue_location_ignored_without_leak(self):
        assert "issue_location" not in extract("the door is making noise")


class TestMergeBehavior:
    def test_prior_slots_preserved(self):
        slots = extract("mornings are best for me", {"appliance_type": "dryer"})
        assert slots["appliance_type"] == "dryer"
        assert slots["preferred_time"] == "morning"
        assert slots["completion_percentage"] == 22

    def test_prior_slots_not_mutated(self):
        prior = {"appliance_type": "dryer"}
        extract("my Samsung washer", prior)
        assert prior == {"appliance_type": "dryer"}

    def test_new_match_overwrites(self):
        slots = extract("actually it's the dryer", {"appliance_type": "oven"})
        assert slots["appliance_type"] == "dryer"

    def test_empty_utterance_returns_prior(self):
        prior = {"appliance_type": "oven", "issue_description": "not_heating"}
        slots = extract("   ", prior)
        assert slots == {**prior, "completion_percentage": 22}

    @pytest.mark.parametrize(
        "utterance",
        [
            "My Samsung washer is leaking",
            "John Smith",
            "Springfield, 62701",
            "call 555-123-4567 tomorrow morning",
        ],
    )
    def test_idempotent(self, utterance):
        prior = {"appliance_type": "dryer", "customer_name": "Ann Lee"}
        once = extract(utterance, prior)
        assert extract(utterance, once) == once

    def test_completion_never_drops(self):
        slots: dict = {}
        last = 0
        for utterance in [
            "My Samsung washer is leaking",
            "John Smith",
            "nothing useful here",
            "42 Elm Street",
            "Springfield, 62701",
        ]:
            slots = extract(utterance, slots)
            assert slots["completion_percentage"] >= last
            last = slots["completion_percentage"]

"""Tests for tab_input_service.

Covers key sanitisation and per-tab uniqueness, type/option validation,
partial updates, value changes, removal and reordering.
"""

import pytest

from src.services import tab_input_service
from src.services.exceptions import (
    DashboardTabNotFound,
    TabInputNotFound,
    ValidationError,
)

REGION_OPTIONS = [
    {"label": "North", "value": "north"},
    {"label": "South", "value": "south"},
]


def _keys(inputs):
    return [i.key for i in inputs]


class TestAddInput:
    """Tests for add_input()."""

    def test_defaults(self, test_db, sample_tab):
        tab_input = tab_input_service.add_input(sample_tab.slug)

        assert tab_input.public_id.startswith("tab_input_")
        assert tab_input.key == "input_1"
        assert tab_input.label == "New variable"
        assert tab_input.input_type == "text"
        assert tab_input.value == ""
        assert tab_input.default_value == ""
        assert tab_input.sort_order == 0

    def test_default_keys_follow_input_count(self, test_db, sample_tab):
        tab_input_service.add_input(sample_tab.slug)
        second = tab_input_service.add_input(sample_tab.slug)
        assert second.key == "input_2"
        assert second.sort_order == 1

    def test_key_is_sanitised(self, test_db, sample_tab):
        tab_input = tab_input_service.add_input(sample_tab.slug, key="Start Date!")
        assert tab_input.key == "start_date"

    def test_duplicate_keys_get_suffix(self, test_db, sample_tab):
        tab_input_service.add_input(sample_tab.slug, key="region")
        second = tab_input_service.add_input(sample_tab.slug, key="Region")
        third = tab_input_service.add_input(sample_tab.slug, key="region")

        assert second.key == "region_1"
        assert third.key == "region_2"

    def test_keys_are_unique_per_tab_only(self, test_db, sample_tab):
        from src.services import dashboard_tab_service

        other = dashboard_tab_service.add_tab("Other")
        tab_input_service.add_input(sample_tab.slug, key="region")
        tab_input = tab_input_service.add_input(other.slug, key="region")
        assert tab_input.key == "region"

    def test_value_defaults_to_default_value(self, test_db, sample_tab):
        tab_input = tab_input_service.add_input(
            sample_tab.slug, type="number", default_value="10"
        )
        assert tab_input.value == "10"

    def test_invalid_type_rejected(self, test_db, sample_tab):
        with pytest.raises(ValidationError) as exc:
            tab_input_service.add_input(sample_tab.slug, type="boolean")
        assert "Type" in exc.value.errors[0]

    def test_invalid_number_rejected(self, test_db, sample_tab):
        with pytest.raises(ValidationError):
            tab_input_service.add_input(sample_tab.slug, type="number", value="ten")

    def test_invalid_date_rejected(self, test_db, sample_tab):
        with pytest.raises(ValidationError):
            tab_input_service.add_input(sample_tab.slug, type="date", value="2024-02-30")

    def test_value_must_match_option(self, test_db, sample_tab):
        with pytest.raises(ValidationError):
            tab_input_service.add_input(
                sample_tab.slug, options=REGION_OPTIONS, value="east"
            )

    def test_options_stored(self, test_db, sample_tab):
        tab_input = tab_input_service.add_input(
            sample_tab.slug, options=REGION_OPTIONS, value="south"
        )
        assert tab_input.options == REGION_OPTIONS
        assert tab_input.value == "south"

    def test_unknown_tab(self, test_db):
        with pytest.raises(DashboardTabNotFound):
            tab_input_service.add_input("missing")


class TestUpdateInput:
    """Tests for update_input()."""

    def test_partial_update(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, key="year", label="Year")

        updated = tab_input_service.update_input(
            created.public_id, {"label": "Fiscal Year", "placeholder": "2024"}
        )

        assert updated.label == "Fiscal Year"
        assert updated.placeholder == "2024"
        assert updated.key == "year"

    def test_key_change_excludes_self(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, key="year")
        updated = tab_input_service.update_input(created.public_id, {"key": "YEAR"})
        assert updated.key == "year"

    def test_key_change_uniquified(self, test_db, sample_tab):
        tab_input_service.add_input(sample_tab.slug, key="year")
        other = tab_input_service.add_input(sample_tab.slug, key="month")

        updated = tab_input_service.update_input(other.public_id, {"key": "year"})
        assert updated.key == "year_1"

    def test_type_change_validates_existing_value(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, value="abc")
        with pytest.raises(ValidationError):
            tab_input_service.update_input(created.public_id, {"type": "number"})

    def test_type_field_maps_to_column(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug)
        updated = tab_input_service.update_input(created.public_id, {"type": "date"})
        assert updated.input_type == "date"

    def test_unknown_field_rejected(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug)
        with pytest.raises(ValidationError) as exc:
            tab_input_service.update_input(created.public_id, {"tab_slug": "elsewhere"})
        assert "tab_slug" in exc.value.errors[0]

    def test_missing_input(self, test_db):
        with pytest.raises(TabInputNotFound):
            tab_input_service.update_input("tab_input_missing", {"label": "x"})


class TestSetInputValue:
    """Tests for set_input_value()."""

    def test_set_value(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, type="number")
        updated = tab_input_service.set_input_value(created.public_id, "42.5")
        assert updated.value == "42.5"

    def test_clear_value(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, value="x")
        updated = tab_input_service.set_input_value(created.public_id, None)
        assert updated.value == ""

    def test_invalid_value_rejected(self, test_db, sample_tab):
        created = tab_input_service.add_input(sample_tab.slug, type="date")
        with pytest.raises(ValidationError):
            tab_input_service.set_input_value(created.public_id, "01/02/2024")
        assert tab_input_service.get_input(created.public_id).value == ""


class TestRemoveAndReorder:
    """Tests for remove_input() and reorder_inputs()."""

    @pytest.fixture
    def three_inputs(self, test_db, sample_tab):
        return [
            tab_input_service.add_input(sample_tab.slug, key=key)
            for key in ("a", "b", "c")
        ]

    def test_remove_renumbers(self, three_inputs, sample_tab):
        tab_input_service.remove_input(three_inputs[0].public_id)

        remaining = tab_input_service.list_inputs(sample_tab.slug)
        assert _keys(remaining) == ["b", "c"]
        assert [i.sort_order for i in remaining] == [0, 1]

    def test_remove_missing(self, test_db):
        with pytest.raises(TabInputNotFound):
            tab_input_service.remove_input("tab_input_missing")

    def test_reorder(self, three_inputs, sample_tab):
        reordered = tab_input_service.reorder_inputs(sample_tab.slug, 0, 2)

        assert _keys(reordered) == ["b", "c", "a"]
        assert _keys(tab_input_service.list_inputs(sample_tab.slug)) == ["b", "c", "a"]

    def test_reorder_out_of_range(self, three_inputs, sample_tab):
        with pytest.raises(ValidationError):
            tab_input_service.reorder_inputs(sample_tab.slug, -1, 0)

    def test_reorder_unknown_tab(self, test_db):
        with pytest.raises(DashboardTabNotFound):
            tab_input_service.reorder_inputs("missing", 0, 1)


class TestValidateInputFields:
    """Tests for validate_input_fields()."""

    def test_valid(self):
        assert tab_input_service.validate_input_fields("number", "Count", None, "3", "") == []

    def test_reports_value_and_default_separately(self):
        errors = tab_input_service.validate_input_fields("number", None, None, "x", "y")
        assert len(errors) == 2
        assert errors[0].startswith("Value:")
        assert errors[1].startswith("Default value:")

    def test_bad_options_short_circuit_value_checks(self):
        errors = tab_input_service.validate_input_fields("text", None, "north", "x")
        assert errors == ["Options: must be a list"]

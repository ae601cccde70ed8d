"""
Unit tests for the column mapper.

Run: pytest tests/unit/test_column_mapper.py -v
"""

import pytest

from config.switch_fields import SWITCH_FIELDS, FieldDefinition
from services.column_mapper import (
    auto_map,
    match_header,
    update_mapping,
    mapped_fields,
    has_name_column,
)
from exceptions import UnknownSwitchFieldError, ValidationError


class TestMatchHeader:
    """Tests for match_header()"""

    @pytest.mark.parametrize("header,expected", [
        ("Switch Name", "name"),
        ("name", "name"),
        ("NAME", "name"),
        ("Actuation Force (g)", "actuation_force"),
        ("actuation_force", "actuation_force"),
        ("Pre-travel (mm)", "pre_travel"),
        ("Bottom Out", "bottom_out"),
        ("Magnetic Pole Orientation", "magnet_orientation"),
        ("Image URL", "image_url"),
    ])
    def test_exact_matches(self, header, expected):
        assert match_header(header) == expected

    def test_key_contained_in_header(self):
        """'Switch Type' contains the key 'type'."""
        assert match_header("Switch Type") == "type"

    def test_header_contained_in_label(self):
        """'Actuation' is part of 'Actuation Force (g)'."""
        assert match_header("Actuation") == "actuation_force"

    def test_first_catalog_field_wins_on_containment(self):
        """'Spring' is in both spring labels; the earlier one is used."""
        assert match_header("Spring") == "spring_weight"

    def test_short_header_not_used_for_containment(self):
        assert match_header("Mfr") is None

    def test_unknown_header_is_skipped(self):
        assert match_header("Random Column") is None

    def test_blank_header_is_skipped(self):
        assert match_header("  ") is None

    def test_custom_catalog(self):
        catalog = (FieldDefinition("color", "Housing Color"),)

        assert match_header("housing color", catalog) == "color"
        assert match_header("Switch Name", catalog) is None


class TestAutoMap:
    """Tests for auto_map()"""

    def test_maps_every_column(self):
        # Arrange
        header = ["Switch Name", "Actuation Force (g)", "Something Else"]

        # Act
        mapping = auto_map(header)

        # Assert
        assert mapping == {0: "name", 1: "actuation_force", 2: None}

    def test_is_deterministic(self):
        header = ["Name", "Type", "Technology", "Brand", "Spring Weight"]

        assert auto_map(header) == auto_map(header)

    def test_catalog_labels_map_to_their_own_fields(self):
        """A file with the export header maps every column exactly."""
        header = [f.label for f in SWITCH_FIELDS]

        mapping = auto_map(header)

        assert [mapping[i] for i in range(len(header))] == [f.key for f in SWITCH_FIELDS]

    def test_columns_are_independent(self):
        """Two columns may map to the same field."""
        mapping = auto_map(["Notes", "notes"])

        assert mapping == {0: "notes", 1: "notes"}


class TestUpdateMapping:
    """Tests for update_mapping()"""

    def test_overrides_one_column_and_returns_copy(self):
        # Arrange
        mapping = {0: "name", 1: None}

        # Act
        updated = update_mapping(mapping, 1, "manufacturer")

        # Assert
        assert updated == {0: "name", 1: "manufacturer"}
        assert mapping == {0: "name", 1: None}

    def test_none_skips_column(self):
        assert update_mapping({0: "name", 1: "notes"}, 1, None) == {0: "name", 1: None}

    def test_unknown_field_raises(self):
        with pytest.raises(UnknownSwitchFieldError) as exc_info:
            update_mapping({0: None}, 0, "colour")

        assert exc_info.value.code == "UNKNOWN_SWITCH_FIELD"

    def test_unknown_column_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            update_mapping({0: None}, 3, "name")

        assert exc_info.value.code == "UNKNOWN_COLUMN"


class TestNameColumn:
    """Tests for mapped_fields() / has_name_column()"""

    def test_mapped_fields_ignores_skips(self):
        assert mapped_fields({0: "name", 1: None, 2: "notes", 3: "notes"}) == {"name", "notes"}

    def test_has_name_column(self):
        assert has_name_column({0: "name"}) is True
        assert has_name_column({0: "notes", 1: None}) is False

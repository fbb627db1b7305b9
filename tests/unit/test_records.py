"""
Unit tests for field extraction and key validation
"""

import pytest

from subjects_by_location.records import (
    NA, CompositeKey, ExtractedFields, build_key, composite_key, extract_fields, split_fields
)
from subjects_by_location.synthetic import make_record


def spec_line(location="US", subject="SUBJ1", tail="..."):
    """Shortest record layout that reaches the location field"""
    return "a\tb\tc\td\te\tf\t" + subject + "\t" + "x\t" * 14 + location + "\t" + tail


class TestExtractFields:
    """Tests for FieldExtractor"""

    def test_extracts_location_and_subject(self):
        fields = extract_fields(spec_line())

        assert fields == ExtractedFields("US", "SUBJ1")

    def test_long_location_truncates_to_first_character(self):
        assert extract_fields(make_record("USA", "042")).location == "U"

    def test_short_location_is_kept_verbatim(self):
        assert extract_fields(make_record("U", "042")).location == "U"

    def test_too_few_fields_yields_sentinels(self):
        assert extract_fields("a\tb\tc\td\te") == ExtractedFields(NA, NA)

    def test_exactly_22_fields_yields_sentinels(self):
        record = "\t".join(f"f{i}" for i in range(22))

        assert extract_fields(record) == ExtractedFields(NA, NA)

    def test_exactly_23_fields_is_enough(self):
        fields = [f"f{i}" for i in range(23)]
        fields[6] = "042"
        fields[21] = "GM"

        assert extract_fields("\t".join(fields)) == ExtractedFields("GM", "042")

    def test_empty_record_yields_sentinels(self):
        assert extract_fields("") == ExtractedFields(NA, NA)

    def test_runs_of_tabs_count_as_one_separator(self):
        record = spec_line().replace("\t", "\t\t\t")

        assert extract_fields(record) == ExtractedFields("US", "SUBJ1")

    def test_trailing_tabs_do_not_add_fields(self):
        fields = [f"f{i}" for i in range(22)]
        record = "\t".join(fields) + "\t\t"

        assert len(split_fields(record)) == 22
        assert extract_fields(record) == ExtractedFields(NA, NA)

    def test_trailing_newline_is_ignored(self):
        assert extract_fields(spec_line(tail="end\r\n")) == ExtractedFields("US", "SUBJ1")

    def test_empty_subject_field_never_yields_a_key(self):
        fields = [f"f{i}" for i in range(23)]
        fields[6] = ""
        fields[21] = "US"

        # The empty column collapses into its neighbours, leaving 22 fields
        assert extract_fields("\t".join(fields)) == ExtractedFields(NA, NA)
        assert composite_key("\t".join(fields)) is None

    def test_leading_tab_keeps_an_empty_first_field(self):
        assert split_fields("\ta\tb")[0] == ""


class TestBuildKey:
    """Tests for KeyValidator"""

    def test_valid_fields_build_key(self):
        key = build_key(ExtractedFields("US", "042"))

        assert key == CompositeKey("US", "042")
        assert key.token == "US_042"

    @pytest.mark.parametrize("fields", [
        ExtractedFields(NA, "042"),
        ExtractedFields("US", NA),
        ExtractedFields(NA, NA),
        ExtractedFields("U", "042"),
        ExtractedFields("USA", "042"),
        ExtractedFields("-U", "042"),
        ExtractedFields("", "042"),
    ])
    def test_invalid_fields_are_rejected(self, fields):
        assert build_key(fields) is None

    def test_same_pair_always_maps_to_same_key(self):
        first = composite_key(make_record("FR", "112", 1))
        second = composite_key(make_record("FR", "112", 2))

        assert first == second
        assert hash(first) == hash(second)
        assert first.token == second.token

    def test_malformed_record_has_no_key(self):
        assert composite_key("a\tb\tc\td\te") is None

    def test_truncated_location_fails_validation(self):
        assert composite_key(make_record("USA", "042")) is None


class TestCompositeKeyToken:
    """Tests for the grouping token round trip"""

    def test_round_trip(self):
        key = CompositeKey("US", "042")

        assert CompositeKey.from_token(key.token) == key

    def test_subject_containing_separator_survives(self):
        key = CompositeKey("US", "SUB_JECT_1")

        assert CompositeKey.from_token(key.token) == key

    def test_location_containing_separator_survives(self):
        for key in (CompositeKey("_A", "SUBJ"), CompositeKey("A_", "S"), CompositeKey("_A", "_S")):
            assert CompositeKey.from_token(key.token) == key

    def test_token_without_separator_at_location_end(self):
        with pytest.raises(ValueError):
            CompositeKey.from_token("USA042")

    def test_str_is_token(self):
        assert str(CompositeKey("UK", "190")) == "UK_190"

"""
Tests for schema validation and the recovery pass.
"""

import copy

import pytest

from conftest import payload
from sitegen.models import ContentUnitType
from sitegen.validation import schemas
from sitegen.validation.recovery import normalize_hex_color, recover, truncate_text
from sitegen.validation.schemas import SCHEMAS
from sitegen.validation.validator import validate_unit

U = ContentUnitType


class TestSchemaTable:
    """Tests for the rule table derived from the models."""

    def test_every_unit_has_a_schema(self):
        assert set(SCHEMAS) == set(ContentUnitType)

    def test_nested_max_lengths(self):
        foundation = SCHEMAS[U.FOUNDATION]

        assert foundation.max_lengths["seo.description"] == 160
        assert foundation.max_lengths["hero.cta_text"] == 30
        assert foundation.max_lengths["seo.keywords[]"] == 50

    def test_array_bounds(self):
        assert SCHEMAS[U.VALUES].array_bounds["values"] == (2, 8)
        assert SCHEMAS[U.FEATURES].array_bounds["features"] == (2, 12)
        assert SCHEMAS[U.ABOUT].array_bounds["content"] == (1, 10)
        assert SCHEMAS[U.FOUNDATION].array_bounds["seo.keywords"] == (None, 20)

    def test_array_item_rules(self):
        assert SCHEMAS[U.VALUES].max_lengths["values[].title"] == 50
        assert SCHEMAS[U.ABOUT].max_lengths["content[]"] == 1000

    def test_required_fields(self):
        required = SCHEMAS[U.ABOUT].required_fields

        assert "title" in required
        assert "content" in required
        assert "mission" not in required

    def test_object_keys(self):
        assert SCHEMAS[U.FOUNDATION].rule("branding").keys == (
            "primary_color",
            "secondary_color",
            "accent_color",
            "logo_description",
            "font_family",
        )


class TestValidateUnit:
    """Tests for validate_unit()."""

    def test_valid_first_pass(self):
        report = validate_unit(payload(U.ABOUT), U.ABOUT)

        assert report.valid
        assert not report.recovered
        assert report.applied_fixes == ()
        assert isinstance(report.unit, schemas.AboutSection)

    @pytest.mark.parametrize("unit_type", list(ContentUnitType))
    def test_fixture_payloads_are_valid(self, unit_type):
        assert validate_unit(payload(unit_type), unit_type).applied_fixes == ()

    def test_seo_description_clamped(self):
        """A 210-character SEO description becomes 157 characters plus an ellipsis."""
        data = payload(U.FOUNDATION)
        data["seo"]["description"] = "x" * 210
        report = validate_unit(data, U.FOUNDATION)

        assert report.recovered
        description = report.unit.seo.description
        assert len(description) == 160
        assert description == "x" * 157 + "..."
        assert any("seo.description" in fix for fix in report.applied_fixes)

    def test_missing_required_field_is_invalid(self):
        data = payload(U.ABOUT)
        del data["title"]
        report = validate_unit(data, U.ABOUT)

        assert not report.valid
        assert [e.path for e in report.errors] == ["title"]

    def test_missing_required_field_survives_other_fixes(self):
        """Recovery never fills in a missing required field."""
        data = payload(U.ABOUT)
        del data["title"]
        data["content"] = ["y" * 1200]
        report = validate_unit(data, U.ABOUT)

        assert not report.valid
        assert report.applied_fixes
        assert "title" in [e.path for e in report.errors]

    def test_array_above_max_is_trimmed_from_tail(self):
        data = payload(U.VALUES)
        data["values"] = [
            {"title": f"Value {i}", "description": "A real description.", "icon": "Leaf"}
            for i in range(10)
        ]
        report = validate_unit(data, U.VALUES)

        assert report.recovered
        assert [v.title for v in report.unit.values] == [f"Value {i}" for i in range(8)]

    def test_array_below_min_is_rejected(self):
        data = payload(U.VALUES)
        data["values"] = data["values"][:1]
        report = validate_unit(data, U.VALUES)

        assert not report.valid
        assert report.applied_fixes == ()
        assert [e.path for e in report.errors] == ["values"]

    def test_unknown_key_dropped(self):
        data = payload(U.CONTACT, fax="555-0199")
        report = validate_unit(data, U.CONTACT)

        assert report.recovered
        assert "dropped unknown field fax" in report.applied_fixes

    def test_empty_optional_value_dropped(self):
        data = payload(U.CONTACT, email="")
        report = validate_unit(data, U.CONTACT)

        assert report.recovered
        assert report.unit.email is None

    def test_hex_colors_normalized(self):
        data = payload(U.FOUNDATION)
        data["branding"]["primary_color"] = "2d5f3f"
        data["branding"]["accent_color"] = "f57"
        report = validate_unit(data, U.FOUNDATION)

        assert report.recovered
        assert report.unit.branding.primary_color == "#2D5F3F"
        assert report.unit.branding.accent_color == "#FF5577"

    def test_nested_item_truncated(self):
        data = payload(U.FEATURES)
        data["features"][1]["description"] = "z" * 400
        report = validate_unit(data, U.FEATURES)

        assert report.recovered
        assert len(report.unit.features[1].description) == 300
        assert any("features[1].description" in fix for fix in report.applied_fixes)

    def test_error_paths_include_indexes(self):
        data = payload(U.VALUES)
        del data["values"][1]["icon"]
        report = validate_unit(data, U.VALUES)

        assert not report.valid
        assert [e.path for e in report.errors] == ["values[1].icon"]

    def test_candidate_not_mutated(self):
        data = payload(U.FOUNDATION)
        data["seo"]["description"] = "x" * 210
        before = copy.deepcopy(data)
        validate_unit(data, U.FOUNDATION)

        assert data == before


class TestRecoveryBounds:
    """After recovery nothing exceeds its schema maximum."""

    def test_all_lengths_within_bounds(self):
        data = payload(U.SERVICES)
        data["title"] = "T" * 150
        data["services"] = [
            {"name": "N" * 120, "description": "D" * 900, "price": "P" * 60}
            for _ in range(25)
        ]
        schema = SCHEMAS[U.SERVICES]
        fixed, fixes = recover(data, schema)

        assert fixes
        assert len(fixed["services"]) == 20
        assert len(fixed["title"]) <= 100
        for service in fixed["services"]:
            assert len(service["name"]) <= 100
            assert len(service["description"]) <= 500
            assert len(service["price"]) <= 50
        assert validate_unit(data, U.SERVICES).recovered


class TestHelpers:
    def test_truncate_text(self):
        assert truncate_text("abcdef", 10) == "abcdef"
        assert truncate_text("abcdefghijk", 10) == "abcdefg..."
        assert truncate_text("abcdef", 2) == "ab"

    @pytest.mark.parametrize(
        "raw,expected",
        [("#2d5f3f", "#2D5F3F"), ("f57", "#FF5577"), (" #ABC ", "#AABBCC"), ("green", None)],
    )
    def test_normalize_hex_color(self, raw, expected):
        assert normalize_hex_color(raw) == expected

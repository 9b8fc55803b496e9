"""
Unit tests for the pattern library, configuration overrides and known templates.
"""

import dataclasses

import pytest

from config import ConfigurationManager, get_config
from invoice_ocr.patterns import (
    BUILTIN_TEMPLATES,
    ColumnRole,
    KnownTemplate,
    TemplateRegistry,
    build_pattern_library,
    get_pattern_library,
)
from invoice_ocr.utils.exceptions import PatternLibraryError


class TestPatternLibrary:
    """Tests for the immutable pattern library"""

    def test_library_is_frozen(self, library):
        with pytest.raises(dataclasses.FrozenInstanceError):
            library.version = "changed"

    def test_shared_library_is_cached(self):
        assert get_pattern_library() is get_pattern_library()

    def test_version_from_settings(self):
        assert get_pattern_library().version == str(get_config("patterns.version"))

    def test_every_role_has_a_header_regex(self, library):
        assert set(library.role_patterns) == set(ColumnRole)

    def test_role_regex_is_whole_word(self, library):
        quantity = library.role_patterns[ColumnRole.QUANTITY]
        assert quantity.search("Qty")
        assert not quantity.search("Quantum")

    def test_canonical_uom(self, library):
        assert library.canonical_uom("pcs") == "PC"
        assert library.canonical_uom("BOX") == "BOX"
        assert library.is_uom("Metres")
        assert not library.is_uom("inch")


class TestOverrides:
    """Tests for configured extensions of the built-in library"""

    def test_uom_alias(self):
        library = build_pattern_library({"uom_aliases": {"CTN": "BOX"}})

        assert library.canonical_uom("ctn") == "BOX"
        assert library.is_uom("CTN")
        assert library.uom_pattern.search("12 CTN").group(1) == "CTN"

    def test_override_leaves_builtin_untouched(self, library):
        build_pattern_library({"uom_aliases": {"CTN": "BOX"}})
        assert not library.is_uom("CTN")

    def test_unknown_column_role(self):
        with pytest.raises(PatternLibraryError):
            build_pattern_library({"column_synonyms": {"discount": ["DISC"]}})

    def test_invalid_template_regex(self):
        with pytest.raises(PatternLibraryError):
            build_pattern_library({"templates": [{"name": "bad", "fingerprint": "ACME("}]})

    def test_template_without_fingerprint(self):
        with pytest.raises(PatternLibraryError):
            build_pattern_library({"templates": [{"name": "bad"}]})

    def test_configured_template(self):
        library = build_pattern_library({
            "version": "test-1",
            "templates": [{
                "name": "acme",
                "fingerprint": r"ACME\s+Steel",
                "fields": {"company_name": [r"ACME\s+Steel\s+FZE", "ACME Steel FZE"]},
            }],
        })

        assert library.version == "test-1"
        assert len(library.templates) == len(BUILTIN_TEMPLATES) + 1
        assert library.templates.literal_for("company_name", "ACME  Steel FZE, Ajman") == "ACME Steel FZE"

    def test_settings_file_overrides(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text(
            "patterns:\n"
            "  version: custom\n"
            "  uom_aliases:\n"
            "    DRUM: DRUM\n",
            encoding="utf-8",
        )
        ConfigurationManager(str(settings))

        library = get_pattern_library()
        assert library.version == "custom"
        assert library.is_uom("drum")


class TestTemplates:
    """Tests for known vendor templates"""

    def test_fingerprint_match(self):
        registry = TemplateRegistry(BUILTIN_TEMPLATES)
        names = [t.name for t in registry.match("TOYO CHAIN BLOCK 3.0T X 6MTR")]
        assert names == ["techno_king"]

    def test_literal_requires_fingerprint(self):
        registry = TemplateRegistry(BUILTIN_TEMPLATES)
        assert registry.literal_for("company_name", "Invoice from somebody") is None

    def test_literal_canonical_value(self):
        registry = TemplateRegistry(BUILTIN_TEMPLATES)
        text = "GF Corys Piping Systems LLC Dubal\nInvoice 1"
        assert registry.literal_for("company_name", text) == "GF Corys Piping Systems LLC - Dubai"

    def test_field_literal_shape_is_checked(self):
        with pytest.raises(PatternLibraryError):
            KnownTemplate.from_dict({
                "name": "bad", "fingerprint": "X", "fields": {"company_name": "X LLC"},
            })

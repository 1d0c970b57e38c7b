from __future__ import annotations

import pytest

from normalizers import (
    build_index_keys,
    clean,
    is_useless,
    normalize_key,
    normalize_owner_name,
    normalize_plate_key,
)

SAMPLES = [
    "",
    "   ",
    "abc-123",
    " ABC_123 ",
    "wvw zzz 1k-z_3w 123456",
    "12345",
    "01- دمشق",
    "أحمد",
    "إبراهيم",
    "مُحَمَّد",
    "عبد الله  -  الخطيب",
    "فاطمة",
    "مصطفى",
    "آمنة",
    "أحـــمد",
    "John O'Neil",
    "Zoë Ærøskøbing",
    "لا يوجد",
    "a\tb\nc",
    "_-_",
]


class TestNormalizeKey:
    def test_strips_separators_and_uppercases(self) -> None:
        assert normalize_key(" abc-123_x y ") == "ABC123XY"

    def test_empty_and_none(self) -> None:
        assert normalize_key(None) == ""
        assert normalize_key("") == ""
        assert normalize_key("  - _ ") == ""

    def test_non_string_input(self) -> None:
        assert normalize_key(12345) == "12345"

    @pytest.mark.parametrize("value", SAMPLES)
    def test_idempotent(self, value: str) -> None:
        once = normalize_key(value)
        assert normalize_key(once) == once


class TestNormalizePlateKey:
    def test_joins_region_and_plate(self) -> None:
        assert normalize_plate_key(" sy ", " 12345 ") == "SY|12345"

    def test_keeps_internal_spacing_and_hyphens(self) -> None:
        assert normalize_plate_key("01- دمشق", "ab-12") == "01- دمشق|AB-12"

    def test_missing_parts(self) -> None:
        assert normalize_plate_key(None, None) == "|"
        assert normalize_plate_key("", "123") == "|123"

    @pytest.mark.parametrize("region,plate", [("sy", "12 345"), ("01- دمشق", "ab-1"), ("", ""), (" x ", "y ")])
    def test_idempotent(self, region: str, plate: str) -> None:
        key = normalize_plate_key(region, plate)
        r, p = key.split("|", 1)
        assert normalize_plate_key(r, p) == key


class TestNormalizeOwnerName:
    def test_hamza_alef_variants(self) -> None:
        assert normalize_owner_name("أحمد") == normalize_owner_name("احمد")
        assert normalize_owner_name("إبراهيم") == "ابراهيم"
        assert normalize_owner_name("آمنة") == "امنه"

    def test_alef_maksura_and_taa_marbuta(self) -> None:
        assert normalize_owner_name("مصطفى") == "مصطفي"
        assert normalize_owner_name("فاطمة") == "فاطمه"

    def test_removes_diacritics_and_tatweel(self) -> None:
        assert normalize_owner_name("مُحَمَّد") == "محمد"
        assert normalize_owner_name("أحـــمد") == "احمد"

    def test_punctuation_becomes_single_space(self) -> None:
        assert normalize_owner_name("  عبد الله  -  الخطيب ") == "عبد الله الخطيب"
        assert normalize_owner_name("John O'Neil") == "John O Neil"

    def test_empty_and_none(self) -> None:
        assert normalize_owner_name(None) == ""
        assert normalize_owner_name("   ") == ""

    @pytest.mark.parametrize("value", SAMPLES)
    def test_idempotent(self, value: str) -> None:
        once = normalize_owner_name(value)
        assert normalize_owner_name(once) == once

    @pytest.mark.parametrize("value", SAMPLES)
    def test_deterministic(self, value: str) -> None:
        assert normalize_owner_name(value) == normalize_owner_name(value)


class TestPlaceholders:
    @pytest.mark.parametrize("value", ["لايوجد", "لا يوجد", " لا يوجد ", "لا  يوجد", "", None, "   "])
    def test_useless_values(self, value) -> None:
        assert is_useless(value)

    @pytest.mark.parametrize("value", ["أحمد", "12345", "0"])
    def test_real_values(self, value) -> None:
        assert not is_useless(value)

    def test_clean(self) -> None:
        assert clean(None) == ""
        assert clean("  x ") == "x"
        assert clean(2015) == "2015"


class TestBuildIndexKeys:
    def test_live_record_uses_plate_country(self) -> None:
        keys = build_index_keys(
            {"plateNumber": "12345", "plateCountry": "SY", "chassisNumber": "abc-1", "ownerName": "أحمد"},
            "live",
        )
        assert keys == {
            "plateKey": "SY|12345",
            "plateNumberKey": "12345",
            "chassisKey": "ABC1",
            "engineKey": "",
            "ownerNameKey": "احمد",
        }

    def test_legacy_record_uses_plate_region(self) -> None:
        keys = build_index_keys({"plateNumber": "777", "plateRegion": "01- دمشق", "plateCountry": "SY"}, "legacy")
        assert keys["plateKey"] == "01- دمشق|777"

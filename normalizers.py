# -*- coding: utf-8 -*-
"""
Normalizers

Centralized normalization functions for vehicle identity fields.
All key comparisons use normalized values; the same functions compute the
keys stored alongside each record at write time.

Every function here is pure, total (never raises) and idempotent.
"""

import re
from typing import Any, Dict


# =============================================================================
# RAW VALUE CLEANING
# =============================================================================

# "Not available" placeholders typed into forms and legacy spreadsheets
PLACEHOLDER_VALUES = frozenset([
    'لايوجد',
    'لا يوجد',
])


def clean(value: Any) -> str:
    """Stringify and trim a raw value (None becomes an empty string)."""
    if value is None:
        return ''
    return str(value).strip()


def is_useless(value: Any) -> bool:
    """
    Check whether a raw value carries no identifying information.

    Empty values and the "not available" placeholders (in any spacing or
    diacritic variant) are useless.
    """
    s = clean(value)
    if not s:
        return True
    if s in PLACEHOLDER_VALUES:
        return True
    return normalize_owner_name(s).replace(' ', '') in PLACEHOLDER_VALUES


# =============================================================================
# CHASSIS / ENGINE / PLATE NUMBER KEYS
# =============================================================================

_KEY_STRIP_RE = re.compile(r'[\s\-_]+')


def normalize_key(value: Any) -> str:
    """
    Normalize an identifier (chassis, engine or plate number) to a key.

    Strips whitespace, hyphens and underscores and upper-cases the rest,
    so "abc-123 " and "ABC 123" share the key "ABC123".

    Args:
        value: Raw identifier

    Returns:
        Normalized key or empty string for empty input
    """
    return _KEY_STRIP_RE.sub('', clean(value)).upper()


def normalize_plate_key(region: Any, plate: Any) -> str:
    """
    Build the region/country qualified plate key "<REGION>|<PLATE>".

    Only trims and upper-cases both parts; internal spacing and hyphens are
    significant here (legacy regions look like "01- دمشق").
    """
    r = clean(region).upper()
    p = clean(plate).upper()
    return f'{r}|{p}'


# =============================================================================
# OWNER NAME NORMALIZATION
# =============================================================================

# Tashkeel U+064B..U+065F, superscript alef U+0670, tatweel U+0640
_ARABIC_MARKS_RE = re.compile('[ً-ٰٟـ]')
_ALEF_VARIANTS_RE = re.compile('[أإآ]')  # hamza alef forms U+0623 U+0625 U+0622
_NON_NAME_CHARS_RE = re.compile('[^؀-ۿ\\w\\s]', re.ASCII)
_SPACES_RE = re.compile(r'\s+')


def normalize_owner_name(name: Any) -> str:
    """
    Normalize an owner name to a canonical comparison form.

    Steps:
    1. Trim
    2. Remove Arabic diacritics and the elongation character
    3. Canonicalize letter variants: أ/إ/آ -> ا, ى -> ي, ة -> ه
    4. Replace anything that is not Arabic or an ASCII word character with a space
    5. Collapse whitespace runs and trim again

    Args:
        name: Raw owner name

    Returns:
        Normalized name or empty string for empty input
    """
    s = clean(name)
    if not s:
        return ''

    s = _ARABIC_MARKS_RE.sub('', s)
    s = _ALEF_VARIANTS_RE.sub('ا', s)
    s = s.replace('ى', 'ي').replace('ة', 'ه')
    s = _NON_NAME_CHARS_RE.sub(' ', s)
    s = _SPACES_RE.sub(' ', s).strip()
    return s


# =============================================================================
# STORED KEY DERIVATION
# =============================================================================

def build_index_keys(doc: Dict[str, Any], source: str) -> Dict[str, str]:
    """
    Compute the precomputed keys stored alongside a record.

    Live vehicles qualify the plate with ``plateCountry``; legacy registry
    rows with ``plateRegion``.

    Args:
        doc: Raw record document (camelCase fields)
        source: 'live' or 'legacy'

    Returns:
        Dict with plateKey, plateNumberKey, chassisKey, engineKey, ownerNameKey
    """
    region_field = 'plateCountry' if source == 'live' else 'plateRegion'
    plate = doc.get('plateNumber')
    return {
        'plateKey': normalize_plate_key(doc.get(region_field), plate),
        'plateNumberKey': normalize_key(plate),
        'chassisKey': normalize_key(doc.get('chassisNumber')),
        'engineKey': normalize_key(doc.get('engineNumber')),
        'ownerNameKey': normalize_owner_name(doc.get('ownerName')),
    }

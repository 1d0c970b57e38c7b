# -*- coding: utf-8 -*-
"""
Matcher - identity scoring and autofill resolution

Scores each retrieved record against the identity query with additive,
per-signal weights, ranks them and decides between silent autofill and
human disambiguation.

Autofill only fires on strong evidence: the threshold (70) is reachable by a
chassis, engine or qualified-plate match, never by owner name + national ID
alone (20 + 40 = 60).
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from normalizers import clean, normalize_key, normalize_owner_name, normalize_plate_key
from records import Candidate, IdentityQuery, IndexedRecord


# =============================================================================
# SCORING WEIGHTS
# =============================================================================

WEIGHTS = {
    'chassis': 100,
    'engine': 90,
    'plate_region': 70,     # plateKey matches region/country-qualified plate
    'plate_country': 70,    # raw plateNumber + raw plateCountry both equal
    'plate_number': 30,     # plate number alone, key or raw
    'national_id': 40,
    'owner_name': 20,       # weak: names repeat
}

AUTOFILL_THRESHOLD = int(os.environ.get('AUTOFILL_THRESHOLD', '70'))
TOP_N_CANDIDATES = int(os.environ.get('AUTOFILL_TOP_N', '5'))

# Patch default for plateCountry when the record carries none (legacy rows)
DEFAULT_PLATE_COUNTRY = 'SY'


# =============================================================================
# SCORING FUNCTIONS
# =============================================================================

def score_chassis(raw: str, record: IndexedRecord, weights=None) -> int:
    """Score chassis number match (normalized key or raw exact)."""
    w = (weights or WEIGHTS)['chassis']
    if not raw:
        return 0
    key = normalize_key(raw)
    if (key and record.chassis_key == key) or clean(record.chassis_number) == raw:
        return w
    return 0


def score_engine(raw: str, record: IndexedRecord, weights=None) -> int:
    """Score engine number match (normalized key or raw exact)."""
    w = (weights or WEIGHTS)['engine']
    if not raw:
        return 0
    key = normalize_key(raw)
    if (key and record.engine_key == key) or clean(record.engine_number) == raw:
        return w
    return 0


def score_plate_number(raw: str, record: IndexedRecord, weights=None) -> int:
    """Score plate number alone, without region/country."""
    w = (weights or WEIGHTS)['plate_number']
    if not raw:
        return 0
    key = normalize_key(raw)
    if (key and record.plate_number_key == key) or clean(record.plate_number) == raw:
        return w
    return 0


def score_plate_region(raw: str, region_or_country: str, record: IndexedRecord, weights=None) -> int:
    """Score region/country-qualified plate key match."""
    w = (weights or WEIGHTS)['plate_region']
    if not raw or not region_or_country:
        return 0
    if record.plate_key == normalize_plate_key(region_or_country, raw):
        return w
    return 0


def score_plate_country(raw: str, country: str, record: IndexedRecord, weights=None) -> int:
    """Score raw plate number + raw plate country equality (live-store form)."""
    w = (weights or WEIGHTS)['plate_country']
    if not raw or not country:
        return 0
    if clean(record.plate_country) == country and clean(record.plate_number) == raw:
        return w
    return 0


def score_national_id(national_id: str, record: IndexedRecord, weights=None) -> int:
    """Score national ID (raw exact only)."""
    w = (weights or WEIGHTS)['national_id']
    if not national_id:
        return 0
    if clean(record.national_id) == national_id:
        return w
    return 0


def score_owner_name(name: str, record: IndexedRecord, weights=None) -> int:
    """Score owner name (normalized key only)."""
    w = (weights or WEIGHTS)['owner_name']
    if not name or not record.owner_name_key:
        return 0
    if record.owner_name_key == normalize_owner_name(name):
        return w
    return 0


# =============================================================================
# MAIN SCORING FUNCTION
# =============================================================================

def score_candidate(query: IdentityQuery, record: IndexedRecord, weights=None) -> Tuple[int, Dict[str, int]]:
    """
    Score a single record against the query.

    Scores are purely additive; a record matching several signals
    accumulates all of them.

    Args:
        query: Cleaned identity query
        record: Retrieved record
        weights: Optional weights dict (defaults to WEIGHTS)

    Returns:
        Tuple of (total_score, breakdown_dict)
    """
    w = weights or WEIGHTS
    breakdown = {
        'chassis': score_chassis(query.chassis_number, record, weights=w),
        'engine': score_engine(query.engine_number, record, weights=w),
        'plate_number': score_plate_number(query.plate_number, record, weights=w),
        'plate_region': score_plate_region(query.plate_number, query.region_or_country, record, weights=w),
        'plate_country': score_plate_country(query.plate_number, query.plate_country, record, weights=w),
        'national_id': score_national_id(query.national_id, record, weights=w),
        'owner_name': score_owner_name(query.owner_name, record, weights=w),
    }
    return sum(breakdown.values()), breakdown


def rank_candidates(query: IdentityQuery, records: Sequence[IndexedRecord], weights=None) -> List[Candidate]:
    """
    Score and rank records, dropping those that match no signal.

    The sort is stable: equal scores keep the input order, which is live
    records before legacy ones, each in store retrieval order.

    Returns:
        List of candidates sorted by score (highest first)
    """
    scored = []
    for record in records:
        score, breakdown = score_candidate(query, record, weights=weights)
        if score <= 0:
            continue
        scored.append(Candidate(record=record, score=score, breakdown=breakdown))

    scored.sort(key=lambda c: -c.score)
    return scored


# =============================================================================
# PATCH PROJECTION
# =============================================================================

def to_patch(record: IndexedRecord) -> Dict[str, Any]:
    """
    Project a record into the flat set of fillable form fields.

    Missing fields become '' (year becomes None, plateCountry 'SY').
    """
    def s(value: Any) -> Any:
        return value if value is not None else ''

    return {
        'ownerName': s(record.owner_name),
        'nationalId': s(record.national_id),
        'phoneNumber': s(record.phone_number),
        'address': s(record.address),

        'plateNumber': s(record.plate_number),
        'plateCountry': record.plate_country if record.plate_country is not None else DEFAULT_PLATE_COUNTRY,
        'plateRegion': s(record.plate_region),

        'chassisNumber': s(record.chassis_number),
        'engineNumber': s(record.engine_number),

        'brand': s(record.brand),
        'model': s(record.model),
        'year': record.year,

        'color': s(record.color),
        'fuelType': s(record.fuel_type),
        'engineCapacity': s(record.engine_capacity),
    }


def to_preview(record: IndexedRecord) -> Dict[str, Any]:
    """Short summary shown in the disambiguation list."""
    return {
        'ownerName': record.owner_name,
        'plateNumber': record.plate_number,
        'plateRegion': record.plate_region,
        'plateCountry': record.plate_country,
        'chassisNumber': record.chassis_number,
        'engineNumber': record.engine_number,
        'nationalId': record.national_id,
        'brand': record.brand,
        'model': record.model,
        'year': record.year,
    }


def to_candidate_view(candidate: Candidate) -> Dict[str, Any]:
    return {
        'from': candidate.source,
        'score': candidate.score,
        'preview': to_preview(candidate.record),
        'patch': to_patch(candidate.record),
    }


# =============================================================================
# RESOLUTION
# =============================================================================

def is_autofill_eligible(score: int, threshold: int = AUTOFILL_THRESHOLD) -> bool:
    return score >= threshold


@dataclass
class Resolution:
    """Outcome of one autofill lookup."""

    match: Optional[Dict[str, Any]] = None
    candidates: List[Dict[str, Any]] = field(default_factory=list)
    best_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {'success': True, 'match': self.match, 'candidates': self.candidates}


def resolve(
    ranked: Sequence[Candidate],
    threshold: int = AUTOFILL_THRESHOLD,
    top_n: int = TOP_N_CANDIDATES,
) -> Resolution:
    """
    Decide between automatic fill and human disambiguation.

    Args:
        ranked: Candidates sorted by score (highest first), all with score > 0
        threshold: Minimum best score for a silent autofill
        top_n: Number of candidates exposed for manual selection

    Returns:
        Resolution with ``match`` set only when the best score reaches the threshold
    """
    if not ranked:
        return Resolution()

    # First of the highest scores, so ties keep input order
    best = max(ranked, key=lambda c: c.score)
    match = to_patch(best.record) if is_autofill_eligible(best.score, threshold) else None
    return Resolution(
        match=match,
        candidates=[to_candidate_view(c) for c in ranked[:top_n]],
        best_score=best.score,
    )

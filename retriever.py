# -*- coding: utf-8 -*-
"""
Candidate Retriever

Turns an identity query into an "any-of" set of equality conditions and runs
it against every record source. Each source applies its own cap, so the merged
list is "top N per source", scored and re-ranked afterwards.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Sequence

from normalizers import normalize_key, normalize_owner_name, normalize_plate_key
from records import IdentityQuery, IndexedRecord, RecordSource

logger = logging.getLogger(__name__)

PER_SOURCE_LIMIT = int(os.environ.get('AUTOFILL_PER_SOURCE_LIMIT', '10'))


# =============================================================================
# CONDITION BUILDING
# =============================================================================

def build_or_conditions(query: IdentityQuery) -> List[Dict[str, Any]]:
    """
    Build the disjunctive lookup for a query.

    Keys catch spelling/formatting variance; raw equality catches legacy rows
    whose stored key diverges from today's normalization.

    Args:
        query: Cleaned identity query (placeholders already blanked)

    Returns:
        List of MongoDB equality filters; empty when nothing is searchable
    """
    conditions: List[Dict[str, Any]] = []

    if query.chassis_number:
        raw = query.chassis_number
        _append_key(conditions, 'chassisKey', normalize_key(raw))
        conditions.append({'chassisNumber': raw})

    if query.engine_number:
        raw = query.engine_number
        _append_key(conditions, 'engineKey', normalize_key(raw))
        conditions.append({'engineNumber': raw})

    if query.plate_number:
        raw = query.plate_number
        _append_key(conditions, 'plateNumberKey', normalize_key(raw))
        conditions.append({'plateNumber': raw})

        if query.region_or_country:
            conditions.append({'plateKey': normalize_plate_key(query.region_or_country, raw)})

        if query.plate_country:
            conditions.append({'plateNumber': raw, 'plateCountry': query.plate_country})

    # National IDs are compared raw only
    if query.national_id:
        conditions.append({'nationalId': query.national_id})

    if query.owner_name:
        _append_key(conditions, 'ownerNameKey', normalize_owner_name(query.owner_name))
        conditions.append({'ownerName': query.owner_name})

    return conditions


def _append_key(conditions: List[Dict[str, Any]], field_name: str, key: str) -> None:
    # An empty key would match every record stored without one
    if key:
        conditions.append({field_name: key})


# =============================================================================
# RETRIEVER
# =============================================================================

class CandidateRetriever:
    """Queries all record sources concurrently for one identity query."""

    def __init__(self, sources: Sequence[RecordSource], per_source_limit: int = PER_SOURCE_LIMIT):
        if per_source_limit <= 0:
            raise ValueError(f"per_source_limit must be positive, got {per_source_limit}")
        self.sources = list(sources)
        self.per_source_limit = per_source_limit

    def retrieve(self, query: IdentityQuery) -> List[IndexedRecord]:
        """
        Fetch candidate records from every source.

        Returns records in source order (as passed to the constructor), each
        source's records in its retrieval order. No source is queried when no
        condition can be built. The first store failure propagates.
        """
        conditions = build_or_conditions(query)
        if not conditions:
            logger.debug("No searchable fields in query, skipping stores")
            return []

        exclude_id = query.exclude_id or None
        logger.info(f"[RETRIEVER] {len(conditions)} conditions across {len(self.sources)} sources")

        with ThreadPoolExecutor(max_workers=max(1, len(self.sources))) as executor:
            futures = [
                executor.submit(source.find_candidates, conditions, exclude_id, self.per_source_limit)
                for source in self.sources
            ]
            # Wait in submission order so the merge is deterministic
            results = [future.result() for future in futures]

        records: List[IndexedRecord] = []
        for source, found in zip(self.sources, results):
            capped = found[:self.per_source_limit]
            logger.info(f"[RETRIEVER] {source.source}: {len(capped)} records")
            records.extend(capped)
        return records

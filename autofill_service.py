# -*- coding: utf-8 -*-
"""
Autofill Service

Single entry point used by the form UI: normalizes the query, retrieves
candidates from the live and legacy stores, scores and resolves them.

Stateless per request; store handles are injected, never global.
"""

import logging
from typing import Any, Dict, Optional

from matcher import AUTOFILL_THRESHOLD, TOP_N_CANDIDATES, Resolution, rank_candidates, resolve
from records import DiagnosticSource, IdentityQuery, RecordSource
from retriever import PER_SOURCE_LIMIT, CandidateRetriever

logger = logging.getLogger(__name__)


class AutofillService:
    """
    Identity resolution over the live vehicle store and the legacy registry.

    Store failures propagate (as ``StoreQueryError`` from the MongoDB
    sources); a failed lookup is never reported as "no match".
    """

    def __init__(
        self,
        live: RecordSource,
        legacy: DiagnosticSource,
        per_source_limit: int = PER_SOURCE_LIMIT,
        top_n: int = TOP_N_CANDIDATES,
        threshold: int = AUTOFILL_THRESHOLD,
        db_name: Optional[str] = None,
    ):
        if top_n <= 0:
            raise ValueError(f"top_n must be positive, got {top_n}")
        self.live = live
        self.legacy = legacy
        self.retriever = CandidateRetriever([live, legacy], per_source_limit=per_source_limit)
        self.top_n = top_n
        self.threshold = threshold
        self.db_name = db_name

    def autofill(self, query: IdentityQuery) -> Resolution:
        """
        Resolve a partial identity into an autofill match and/or candidates.

        Args:
            query: Identity query built with ``IdentityQuery.from_params``

        Returns:
            Resolution; empty (no match, no candidates) when nothing is searchable
        """
        if query.is_empty():
            return Resolution()

        records = self.retriever.retrieve(query)
        ranked = rank_candidates(query, records)
        resolution = resolve(ranked, threshold=self.threshold, top_n=self.top_n)

        logger.info(
            f"[AUTOFILL] {len(records)} records, {len(ranked)} scored, "
            f"best={resolution.best_score}, autofill={'yes' if resolution.match else 'no'}"
        )
        return resolution

    def lookup(self, **params: Any) -> Dict[str, Any]:
        """Convenience wrapper: raw params in, response dict out."""
        return self.autofill(IdentityQuery.from_params(**params)).to_dict()

    def health(self) -> Dict[str, Any]:
        """Store name, approximate registry size and one sample registry record."""
        return {
            'dbName': self.db_name,
            'regCount': self.legacy.estimated_count(),
            'sample': self.legacy.sample_keys(),
        }

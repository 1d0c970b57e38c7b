from __future__ import annotations

from typing import Any

import pytest

from autofill_service import AutofillService
from mongodb_client import StoreQueryError
from normalizers import build_index_keys
from records import IndexedRecord, RecordOrigin


def make_doc(source: str, record_id: str, **fields: Any) -> dict[str, Any]:
    """A stored document with keys computed the way the write paths do."""
    doc = {"_id": record_id, **fields}
    doc.update(build_index_keys(doc, source))
    return doc


class FakeRecordSource:
    """In-memory record source evaluating the same equality conditions as MongoDB."""

    def __init__(self, source: str, docs: list[dict[str, Any]] | None = None, fail: bool = False) -> None:
        self.source = source
        self.docs = list(docs or [])
        self.fail = fail
        self.calls: list[tuple[list[dict[str, Any]], str | None, int]] = []

    def find_candidates(self, or_conditions, exclude_id=None, limit=10):
        self.calls.append((or_conditions, exclude_id, limit))
        if self.fail:
            raise StoreQueryError(self.source, "connection refused")

        found = []
        for doc in self.docs:
            if exclude_id and self.source == RecordOrigin.LIVE and str(doc.get("_id")) == exclude_id:
                continue
            if any(all(doc.get(k) == v for k, v in cond.items()) for cond in or_conditions):
                found.append(IndexedRecord.from_document(doc, self.source))
            if len(found) >= limit:
                break
        return found

    def estimated_count(self) -> int:
        if self.fail:
            raise StoreQueryError(self.source, "connection refused")
        return len(self.docs)

    def sample_keys(self):
        if not self.docs:
            return None
        doc = self.docs[0]
        return {k: doc.get(k) for k in ("_id", "chassisNumber", "chassisKey", "plateKey")}


@pytest.fixture
def live_store() -> FakeRecordSource:
    return FakeRecordSource(RecordOrigin.LIVE)


@pytest.fixture
def legacy_store() -> FakeRecordSource:
    return FakeRecordSource(RecordOrigin.LEGACY)


@pytest.fixture
def service(live_store: FakeRecordSource, legacy_store: FakeRecordSource) -> AutofillService:
    return AutofillService(live_store, legacy_store, db_name="sigurta_test")

# -*- coding: utf-8 -*-
"""
Records

Types shared by the autofill engine: the per-request identity query, the
read-only view of a stored vehicle/registry row, scored candidates and the
record source interface implemented once per store.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Protocol

from normalizers import clean, is_useless


# =============================================================================
# PROVENANCE
# =============================================================================

class RecordOrigin:
    LIVE = 'live'
    LEGACY = 'legacy'


# =============================================================================
# IDENTITY QUERY
# =============================================================================

@dataclass(frozen=True)
class IdentityQuery:
    """Partial identifying data typed into a form. Empty string = not provided."""

    plate_number: str = ''
    plate_country: str = ''
    plate_region: str = ''
    chassis_number: str = ''
    engine_number: str = ''
    national_id: str = ''
    owner_name: str = ''
    exclude_id: str = ''

    @classmethod
    def from_params(cls, **raw: Any) -> 'IdentityQuery':
        """
        Build a query from raw request values.

        Values are trimmed, None becomes '' and "not available" placeholders
        are treated as absent. Unknown keys are ignored.
        """
        names = {f.name for f in fields(cls)}
        values = {}
        for name, value in raw.items():
            if name not in names:
                continue
            values[name] = '' if is_useless(value) else clean(value)
        return cls(**values)

    @property
    def region_or_country(self) -> str:
        """Plate qualifier: the region when given, otherwise the country."""
        return self.plate_region or self.plate_country

    def is_empty(self) -> bool:
        return not any((
            self.plate_number,
            self.chassis_number,
            self.engine_number,
            self.national_id,
            self.owner_name,
        ))


# =============================================================================
# INDEXED RECORD
# =============================================================================

# Document field -> IndexedRecord attribute
DOCUMENT_FIELDS = {
    'plateNumber': 'plate_number',
    'plateCountry': 'plate_country',
    'plateRegion': 'plate_region',
    'chassisNumber': 'chassis_number',
    'engineNumber': 'engine_number',
    'nationalId': 'national_id',
    'ownerName': 'owner_name',
    'phoneNumber': 'phone_number',
    'address': 'address',
    'brand': 'brand',
    'model': 'model',
    'year': 'year',
    'color': 'color',
    'fuelType': 'fuel_type',
    'engineCapacity': 'engine_capacity',
    'plateKey': 'plate_key',
    'plateNumberKey': 'plate_number_key',
    'chassisKey': 'chassis_key',
    'engineKey': 'engine_key',
    'ownerNameKey': 'owner_name_key',
}

# Descriptive fields are only copied into the patch, so stored values keep their type
PASSTHROUGH_FIELDS = {'phone_number', 'address', 'brand', 'model', 'color', 'fuel_type', 'engine_capacity'}


@dataclass(frozen=True)
class IndexedRecord:
    """
    A stored vehicle or registry row as seen by the autofill engine.

    Keys are precomputed by the owning store at write time; this engine only
    reads them. Identifiers and keys are kept as strings; missing fields stay
    None.
    """

    source: str
    record_id: Optional[str] = None

    plate_number: Optional[str] = None
    plate_country: Optional[str] = None
    plate_region: Optional[str] = None
    chassis_number: Optional[str] = None
    engine_number: Optional[str] = None
    national_id: Optional[str] = None
    owner_name: Optional[str] = None
    phone_number: Any = None
    address: Any = None
    brand: Any = None
    model: Any = None
    year: Optional[int] = None
    color: Any = None
    fuel_type: Any = None
    engine_capacity: Any = None

    plate_key: Optional[str] = None
    plate_number_key: Optional[str] = None
    chassis_key: Optional[str] = None
    engine_key: Optional[str] = None
    owner_name_key: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any], source: str) -> 'IndexedRecord':
        """
        Build a record from a MongoDB document.

        Only the fields the scorer and patch projection use are kept; unknown
        fields are dropped and missing ones tolerated.
        """
        values: Dict[str, Any] = {}
        for doc_field, attr in DOCUMENT_FIELDS.items():
            value = doc.get(doc_field)
            if value is None:
                continue
            if attr == 'year':
                values[attr] = _to_year(value)
            elif attr in PASSTHROUGH_FIELDS:
                values[attr] = value
            else:
                values[attr] = str(value)

        raw_id = doc.get('_id')
        return cls(
            source=source,
            record_id=str(raw_id) if raw_id is not None else None,
            **values
        )


def _to_year(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# CANDIDATE
# =============================================================================

@dataclass
class Candidate:
    """A retrieved record paired with its score against the query."""

    record: IndexedRecord
    score: int
    breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.record.source


# =============================================================================
# RECORD SOURCE INTERFACE
# =============================================================================

class RecordSource(Protocol):
    """Read-only query interface over one physical record store."""

    source: str

    def find_candidates(
        self,
        or_conditions: List[Dict[str, Any]],
        exclude_id: Optional[str],
        limit: int,
    ) -> List[IndexedRecord]:
        ...


class DiagnosticSource(RecordSource, Protocol):
    """A record source that can also report its size and a sample row."""

    def estimated_count(self) -> int:
        ...

    def sample_keys(self) -> Optional[Dict[str, Any]]:
        ...

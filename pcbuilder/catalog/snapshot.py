"""Immutable catalog snapshots.

A snapshot is what a generation run iterates over. Refreshing the catalog
means building a new snapshot; a run in progress keeps the one it was given.
Freshness is tracked on the snapshot itself instead of in module state.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pcbuilder.catalog.normalize import normalize_catalog
from pcbuilder.catalog.sheets import records_from_sheet
from pcbuilder.models.components import Category, PartBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _canonical(part: PartBase) -> str:
    # Token sets dump as lists in arbitrary order
    data = part.model_dump(mode="json")
    return json.dumps(
        {k: sorted(v) if isinstance(v, list) else v for k, v in data.items()},
        sort_keys=True,
    )


@dataclass(frozen=True)
class CatalogSnapshot:
    """Normalized parts plus when and where they were fetched."""

    parts: Tuple[PartBase, ...] = ()
    fetched_at: datetime = field(default_factory=_utcnow)
    source: str = "inline"

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]] = (),
        sheet_rows: Optional[Mapping[str, List[List[Any]]]] = None,
        source: str = "inline",
        fetched_at: Optional[datetime] = None,
    ) -> "CatalogSnapshot":
        """Normalize flat records and spreadsheet tabs into one snapshot."""
        raw = list(records)
        if sheet_rows:
            raw.extend(records_from_sheet(sheet_rows))
        return cls(
            parts=tuple(normalize_catalog(raw)),
            fetched_at=fetched_at or _utcnow(),
            source=source,
        )

    def __len__(self) -> int:
        return len(self.parts)

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or _utcnow()) - self.fetched_at).total_seconds()

    def is_stale(self, max_age_seconds: float, now: Optional[datetime] = None) -> bool:
        """True once the snapshot is older than the caller's freshness window."""
        return self.age_seconds(now) > max_age_seconds

    def by_category(self) -> Dict[Category, List[PartBase]]:
        groups: Dict[Category, List[PartBase]] = {}
        for part in self.parts:
            groups.setdefault(part.category, []).append(part)
        return groups

    @property
    def fingerprint(self) -> str:
        """Order-independent content hash of every part."""
        rows = sorted(_canonical(p) for p in self.parts)
        return hashlib.sha256("\n".join(rows).encode()).hexdigest()[:16]

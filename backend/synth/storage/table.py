"""
Synth Backend: Entity Table
============================

What:  The id → record map for one entity kind, plus its id counter.
How:   Records are kept in a dict keyed by id; dict insertion order is the
       store's natural iteration order (ascending id). Ids come from a
       per-table counter that only moves forward, so an id is never reused
       even after a row is deleted.
Who:   Owned by EntityStore, which holds its lock around every call.

EntityTable does no locking of its own and no enrichment. It never hands
out the instances it stores: every returned record is a deep copy, so a
caller mutating a returned `tags` list cannot change stored state.

Datetimes are stored timezone-aware in UTC; naive values written through
insert, merge or load are taken to be UTC.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, Type, TypeVar

from synth.models.entities import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

# Fields an update may never touch
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def _detach(record: R) -> R:
    return record.model_copy(deep=True)


def as_utc(value: datetime) -> datetime:
    """Timezone-aware UTC form of `value`; naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
    # Every stored datetime is aware UTC
    return {
        name: as_utc(value) if isinstance(value, datetime) else value
        for name, value in fields.items()
    }


class EntityTable(Generic[R]):
    """
    Storage for one entity kind.

    Attributes:
        kind:   Snake-case name of the entity kind ("snippet", "author_follower")
        model:  The Record subclass stored in this table
    """

    def __init__(self, kind: str, model: Type[R]):
        self.kind = kind
        self.model = model
        self._rows: Dict[int, R] = {}
        self._next_id = 1

    # ── Identity ──────────────────────────────────────────────────────────

    def allocate_id(self) -> int:
        """Reserve and return the next identifier for this kind."""
        record_id = self._next_id
        self._next_id += 1
        return record_id

    # ── Writes ────────────────────────────────────────────────────────────

    def insert(self, created_at: datetime, **fields: Any) -> R:
        """
        Build a record from `fields`, assign it an id and creation time, store it.

        Missing required fields surface as a pydantic error from the model;
        callers are expected to pass validated insert payloads.
        """
        record = self.model(
            id=self.allocate_id(),
            created_at=as_utc(created_at),
            **_utc_values(copy.deepcopy(fields)),
        )
        self._rows[record.id] = record
        return _detach(record)

    def merge(self, record_id: int, changes: Mapping[str, Any]) -> Optional[R]:
        """
        Shallow-merge `changes` onto the stored record.

        Values replace the stored ones wholesale (a new `tags` list replaces
        the old list). `id` and `created_at` are never changed, and names
        that are not fields of the model are dropped with a warning.

        Returns:
            The merged record, or None if `record_id` is not stored.
        """
        current = self._rows.get(record_id)
        if current is None:
            return None

        accepted = {}
        for name, value in changes.items():
            if name in IMMUTABLE_FIELDS:
                logger.warning("Ignoring update of immutable field %s.%s", self.kind, name)
            elif name not in self.model.model_fields:
                logger.warning("Ignoring unknown field %s.%s", self.kind, name)
            else:
                accepted[name] = copy.deepcopy(value)

        merged = current.model_copy(update=_utc_values(accepted))
        self._rows[record_id] = merged
        return _detach(merged)

    def delete(self, record_id: int) -> bool:
        return self._rows.pop(record_id, None) is not None

    # ── Reads ─────────────────────────────────────────────────────────────

    def get(self, record_id: int) -> Optional[R]:
        record = self._rows.get(record_id)
        return _detach(record) if record is not None else None

    def find_first(self, predicate: Callable[[R], bool]) -> Optional[R]:
        """First record, in insertion order, for which `predicate` holds."""
        for row in self._rows.values():
            if predicate(row):
                return _detach(row)
        return None

    def filter(self, predicate: Callable[[R], bool]) -> List[R]:
        return [_detach(row) for row in self._rows.values() if predicate(row)]

    def __len__(self) -> int:
        return len(self._rows)

    # ── Owner-Only Access ─────────────────────────────────────────────────
    # Stored instances, not copies. Only the owning store uses these, under
    # its lock, to read records it then maps into fresh views.

    def peek(self, record_id: Optional[int]) -> Optional[R]:
        if record_id is None:
            return None
        return self._rows.get(record_id)

    def scan(self) -> Iterator[R]:
        return iter(self._rows.values())

    # ── Snapshot Support ──────────────────────────────────────────────────

    def dump(self) -> Dict[str, Any]:
        """JSON-compatible form: the id counter and every row, in order."""
        return {
            "next_id": self._next_id,
            "rows": [row.model_dump(mode="json", by_alias=True) for row in self._rows.values()],
        }

    def load(self, data: Mapping[str, Any]) -> None:
        """
        Replace the table contents with a previously dumped state.

        The counter is restored as the larger of the dumped counter and
        max(id) + 1 so that allocation stays monotonic.

        Raises:
            ValueError: If `data` is not shaped like the output of dump().
                        Malformed rows raise pydantic's ValidationError.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Table {self.kind!r} must be an object, got {type(data).__name__}")
        raw_rows = data.get("rows", [])
        next_id = data.get("next_id", 1)
        if not isinstance(raw_rows, list):
            raise ValueError(f"Table {self.kind!r} rows must be a list")
        if not isinstance(next_id, int) or isinstance(next_id, bool):
            raise ValueError(f"Table {self.kind!r} next_id must be an integer")

        rows = []
        for raw in raw_rows:
            row = self.model.model_validate(raw)
            rows.append(row.model_copy(update=_utc_values(dict(row))))
        self._rows = {row.id: row for row in rows}
        highest = max(self._rows, default=0)
        self._next_id = max(next_id, highest + 1)

    def adopt(self, other: "EntityTable[R]") -> None:
        """Take over the rows and counter of a staged table of the same kind."""
        self._rows = other._rows
        self._next_id = other._next_id

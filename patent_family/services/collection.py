"""The user's patent family: one record per canonical number, persisted as a snapshot."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from patent_family.core.errors import InvalidIdentifier
from patent_family.db.store import KeyValueStore
from patent_family.models.family import PatentRecord, Relationship
from patent_family.schemas.family import AnalysisEntry, FamilySnapshot, PatentRecordSchema
from patent_family.services.identifiers import normalize

logger = logging.getLogger(__name__)

Listener = Callable[[PatentRecord], None]

DERIVED_FIELDS = {"display_number", "in_progress"}


class FamilyCollection:
    """Explicit store object shared by the acquisition, enrichment and import services.

    Records are keyed by canonical patent number. Every mutation is saved to the
    key-value store and announced to subscribed listeners so partially enriched
    records are observable while later stages are still running.
    """

    def __init__(self, store: KeyValueStore, key: str = "patent_family") -> None:
        self._store = store
        self.key = key
        self._records: Dict[str, PatentRecord] = {}
        self._listeners: List[Listener] = []
        self.analyzed = False
        # Bumped on clear() so running batch imports can notice and stop.
        self.generation = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, number: str) -> bool:
        return number in self._records

    @property
    def records(self) -> List[PatentRecord]:
        return list(self._records.values())

    def numbers(self) -> List[str]:
        return list(self._records)

    def get(self, number: str) -> Optional[PatentRecord]:
        return self._records.get(number)

    def get_by_id(self, record_id: str) -> Optional[PatentRecord]:
        return next((record for record in self._records.values() if record.id == record_id), None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        raw = self._store.get(self.key)
        self._records = {}
        self.analyzed = False
        if raw is None:
            return
        try:
            snapshot = FamilySnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Failed to load saved family: %s", exc)
            return
        for member in snapshot.members:
            record = PatentRecord(**member.model_dump(exclude=DERIVED_FIELDS))
            self._records.setdefault(record.patent_number, record)
        self.analyzed = snapshot.analyzed
        logger.info("Loaded %s family members", len(self._records))

    def save(self) -> None:
        snapshot = FamilySnapshot(
            members=[PatentRecordSchema.model_validate(record) for record in self._records.values()],
            analyzed=self.analyzed,
        )
        self._store.set(self.key, snapshot.model_dump_json().encode("utf-8"))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, record: PatentRecord) -> Tuple[PatentRecord, bool]:
        """Insert a record; an already-present number is a no-op returning the existing one."""

        existing = self._records.get(record.patent_number)
        if existing is not None:
            logger.info("Patent %s already in family", record.patent_number)
            return existing, False
        if not self._records:
            record = replace(record, is_original=True, relationship=Relationship.ORIGINAL)
        elif record.is_original:
            record = replace(record, is_original=False, relationship=Relationship.UNKNOWN)
        self._records[record.patent_number] = record
        self.analyzed = False
        self._commit(record)
        return record, True

    def publish(self, record: PatentRecord) -> bool:
        """Replace a record with a newer version of itself.

        Returns False when the record was removed (or the family cleared) meanwhile.
        """

        current = self._records.get(record.patent_number)
        if current is None or current.id != record.id:
            return False
        self._records[record.patent_number] = record
        self._commit(record)
        return True

    def remove(self, record_id: str) -> bool:
        record = self.get_by_id(record_id)
        if record is None:
            return False
        del self._records[record.patent_number]
        self.analyzed = False
        self.save()
        return True

    def clear(self) -> None:
        self._records = {}
        self.analyzed = False
        self.generation += 1
        self._store.delete(self.key)
        logger.info("Family cleared")

    def apply_analysis(self, entries: Iterable[AnalysisEntry]) -> List[PatentRecord]:
        updated: List[PatentRecord] = []
        for entry in entries:
            try:
                number = normalize(entry.patent_number)
            except InvalidIdentifier:
                continue
            record = self._records.get(number)
            if record is None:
                continue
            overlaps = []
            for raw in entry.overlaps_with:
                try:
                    other = normalize(raw)
                except InvalidIdentifier:
                    continue
                if other != number and other not in overlaps:
                    overlaps.append(other)
            record = replace(
                record,
                overlaps_with=overlaps,
                overlap_explanation=entry.overlap_explanation,
                differentiation=entry.differentiation,
            )
            self._records[number] = record
            updated.append(record)
        self.analyzed = True
        self.save()
        for record in updated:
            self._notify(record)
        return updated

    def _commit(self, record: PatentRecord) -> None:
        self.save()
        self._notify(record)

    def _notify(self, record: PatentRecord) -> None:
        for listener in list(self._listeners):
            listener(record)

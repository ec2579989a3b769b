"""Sequential, paced import of discovered family members."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from patent_family.core.errors import PatentFamilyError
from patent_family.models.family import EnrichmentStage
from patent_family.services.family import FamilyService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class ImportOutcome:
    identifier: str
    ok: bool
    patent_number: Optional[str] = None
    record_id: Optional[str] = None
    duplicate: bool = False
    error: Optional[str] = None


@dataclass
class ImportReport:
    total: int
    outcomes: List[ImportOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> List[ImportOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[ImportOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


class FamilyImporter:
    """Import candidates one at a time so neither source is hit concurrently."""

    def __init__(
        self,
        service: FamilyService,
        delay_seconds: float = 1.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.service = service
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def import_many(
        self,
        identifiers: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportReport:
        items = list(identifiers)
        report = ImportReport(total=len(items))
        collection = self.service.collection
        generation = collection.generation

        for index, identifier in enumerate(items):
            if collection.generation != generation:
                logger.info("Family cleared; stopping import after %s of %s", index, len(items))
                report.cancelled = True
                break

            outcome = await self._import_one(identifier)
            report.outcomes.append(outcome)
            logger.info("Imported %s of %s (%s)", report.completed, report.total, identifier)
            if on_progress is not None:
                on_progress(report.completed, report.total)

            if index < len(items) - 1:
                await self._sleep(self.delay_seconds)

        return report

    async def _import_one(self, identifier: str) -> ImportOutcome:
        try:
            added = await self.service.add_patent(identifier)
        except PatentFamilyError as exc:
            logger.warning("Failed to add family member %s: %s", identifier, exc)
            return ImportOutcome(identifier=identifier, ok=False, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure adding family member %s", identifier)
            return ImportOutcome(identifier=identifier, ok=False, error=str(exc) or exc.__class__.__name__)

        record = added.record
        outcome = ImportOutcome(
            identifier=identifier,
            ok=True,
            patent_number=record.patent_number,
            record_id=record.id,
            duplicate=not added.created,
        )
        if added.created and record.stage is EnrichmentStage.ERRORED:
            logger.warning("Family member %s added with errors: %s", identifier, record.last_error)
            outcome.ok = False
            outcome.error = record.last_error
        return outcome

"""Progress of the most recent batch import, as shown to API clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from patent_family.services.importer import ImportOutcome, ImportReport


@dataclass
class ImportProgress:
    active: bool = False
    completed: int = 0
    total: int = 0
    cancelled: bool = False
    outcomes: List[ImportOutcome] = field(default_factory=list)

    def start(self, total: int) -> None:
        self.active = True
        self.completed = 0
        self.total = total
        self.cancelled = False
        self.outcomes = []

    def update(self, completed: int, total: int) -> None:
        self.completed = completed
        self.total = total

    def finish(self, report: ImportReport) -> None:
        self.active = False
        self.completed = report.completed
        self.cancelled = report.cancelled
        self.outcomes = list(report.outcomes)

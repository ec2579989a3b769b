"""Build a patent family from the command line and print it as JSON."""

from __future__ import annotations

import argparse
import asyncio
import logging

from patent_family.core.config import get_settings
from patent_family.core.log import configure_logging
from patent_family.db.session import SessionLocal
from patent_family.db.store import MemoryKeyValueStore, SqlKeyValueStore
from patent_family.schemas import FamilySnapshot, PatentRecordSchema
from patent_family.services.pipeline import build_pipeline

LOGGER = logging.getLogger("build_family")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Add a patent and its US family members")
    parser.add_argument("identifier", help="Patent number, e.g. 'US 10,123,456'")
    parser.add_argument("--import-family", action="store_true", help="Import every family candidate found")
    parser.add_argument("--delay", type=float, help="Override the pause between imported members (seconds)")
    parser.add_argument("--analyze", action="store_true", help="Run the overlap analysis once the family is built")
    parser.add_argument("--clear", action="store_true", help="Start from an empty family")
    parser.add_argument("--dry-run", action="store_true", help="Keep the family in memory instead of the database")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args()


def report_progress(completed: int, total: int) -> None:
    LOGGER.info("Adding family member %s of %s", completed, total)


async def run(args: argparse.Namespace) -> FamilySnapshot:
    settings = get_settings()
    store = MemoryKeyValueStore() if args.dry_run else SqlKeyValueStore(SessionLocal)
    pipeline = build_pipeline(store, settings)
    if args.delay is not None:
        pipeline.importer.delay_seconds = args.delay

    try:
        if args.clear:
            pipeline.collection.clear()

        added = await pipeline.service.add_patent(args.identifier)
        LOGGER.info(
            "%s is %s (%s)",
            added.record.patent_number,
            added.record.stage.value,
            added.record.relationship.value,
        )

        if added.family_candidates:
            LOGGER.info("Found %s related US patents: %s", len(added.family_candidates), ", ".join(added.family_candidates))
            if args.import_family:
                report = await pipeline.importer.import_many(added.family_candidates, on_progress=report_progress)
                for outcome in report.failed:
                    LOGGER.warning("Could not add %s: %s", outcome.identifier, outcome.error)

        if args.analyze and pipeline.analysis.is_configured:
            await pipeline.analyzer.analyze()

        return FamilySnapshot(
            members=[PatentRecordSchema.model_validate(record) for record in pipeline.collection.records],
            analyzed=pipeline.collection.analyzed,
        )
    finally:
        await pipeline.aclose()


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level)
    snapshot = asyncio.run(run(args))
    print(snapshot.model_dump_json(indent=2))


if __name__ == "__main__":
    main()

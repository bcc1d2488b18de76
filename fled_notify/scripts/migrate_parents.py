# fled_notify/scripts/migrate_parents.py
"""
Merge duplicate parent documents into parents/{normalizedId}.

Usage:
    fled-migrate-parents            # dry-run, prints the plan
    fled-migrate-parents --apply    # actually apply changes

Run against staging first and back up your data.
"""
import argparse
import asyncio
import os
import sys

from fled_notify.core.config import settings
from fled_notify.core.logging import log, setup_logging
from fled_notify.services.parent_merge import MergeReport, ParentMerger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fled-migrate-parents", description=__doc__.splitlines()[1])
    parser.add_argument("--apply", action="store_true", help="write merged documents and delete duplicates")
    parser.add_argument(
        "--credentials",
        default=settings.FIREBASE_CREDENTIALS_PATH,
        help="service account JSON (default: %(default)s)",
    )
    return parser


def print_report(report: MergeReport) -> None:
    print(f"Found {report.total_docs} parent docs")
    for plan in report.plans:
        print("---")
        print("Canonical id:", plan.canonical_id)
        print("Source docs:", ", ".join(plan.source_ids))
        print("Merged name:", plan.name)
        print("LinkedStudentIds count:", len(plan.linked_student_ids))
        print("Owner UIDs count:", len(plan.owner_uids))
    print("---")
    print(f"Already canonical: {report.already_canonical}, without email: {report.skipped_without_email}")
    if report.apply:
        print(f"Merged: {len(report.merged)}, failed: {len(report.failed)}, "
              f"duplicates deleted: {report.duplicates_deleted}, students relinked: {report.students_relinked}")
        for canonical_id, error in report.failed:
            print(f"FAILED {canonical_id}: {error}")


async def run(apply: bool, store=None, credentials: str | None = None) -> MergeReport:
    if store is None:
        from fled_notify.core.firebase import get_firebase_app
        from fled_notify.store.firestore import FirestoreStore

        # The async Firestore client binds to the running loop
        store = FirestoreStore(app=get_firebase_app(credentials, require_file=True))
    return await ParentMerger(store).run(apply=apply)


def main(argv=None, store=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    if store is None:
        if not os.path.exists(args.credentials):
            print(f"Service account JSON not found at {args.credentials}", file=sys.stderr)
            print("Place the service account at that path or pass --credentials", file=sys.stderr)
            return 1

    try:
        report = asyncio.run(run(args.apply, store, args.credentials))
    except Exception as e:
        log.exception("parent_merge_aborted", error=str(e))
        return 1

    print_report(report)
    return 2 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())

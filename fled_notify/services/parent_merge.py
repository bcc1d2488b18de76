# fled_notify/services/parent_merge.py
"""
Merge duplicate parent documents into parents/{canonical key}.

Parents are grouped by the canonical key of their email. Within a group
the most recently updated document wins scalar fields (name, phone);
linked students and owners are unioned across every member.

Apply mode writes the canonical document first, re-points students whose
parentId names a duplicate, and only then deletes the duplicates. A
failing group is logged and skipped; the pass moves on to the next one.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.identity import canonical_email, try_normalize_email
from fled_notify.core.logging import log
from fled_notify.store.base import SERVER_TIMESTAMP, ArrayUnion, DocumentStore, StoredDocument, doc_path


def timestamp_millis(value: Any) -> float:
    """Sort key for updatedAt; missing or unreadable values sort as oldest."""
    if value is None:
        return 0
    if isinstance(value, datetime):
        return value.timestamp() * 1000
    if isinstance(value, (int, float)):
        return float(value)
    to_millis = getattr(value, "toMillis", None) or getattr(value, "to_millis", None)
    if callable(to_millis):
        return float(to_millis())
    return 0


def _unique(values: List[Any]) -> List[Any]:
    return list(dict.fromkeys(v for v in values if v))


@dataclass
class MergePlan:
    canonical_id: str
    source_ids: List[str]
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    linked_student_ids: List[str] = field(default_factory=list)
    owner_uids: List[str] = field(default_factory=list)

    @property
    def duplicate_ids(self) -> List[str]:
        return [i for i in self.source_ids if i != self.canonical_id]

    def to_document(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "linkedStudentIds": ArrayUnion(self.linked_student_ids),
            "ownerUids": ArrayUnion(self.owner_uids),
            "updatedAt": SERVER_TIMESTAMP,
        }


@dataclass
class MergeReport:
    apply: bool
    total_docs: int = 0
    skipped_without_email: int = 0
    already_canonical: int = 0
    plans: List[MergePlan] = field(default_factory=list)
    merged: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    students_relinked: int = 0
    duplicates_deleted: int = 0


def plan_group(canonical_id: str, docs: List[StoredDocument]) -> MergePlan:
    ordered = sorted(docs, key=lambda d: timestamp_millis(d.data.get("updatedAt")), reverse=True)

    plan = MergePlan(
        canonical_id=canonical_id,
        source_ids=[d.id for d in ordered],
        email=canonical_email(ordered[0].data["email"]),
    )
    linked: List[str] = []
    owners: List[str] = []
    for doc in ordered:
        data = doc.data
        if not plan.name and data.get("name"):
            plan.name = data["name"]
        if not plan.phone and data.get("phone"):
            plan.phone = data["phone"]
        if isinstance(data.get("linkedStudentIds"), list):
            linked.extend(data["linkedStudentIds"])
        if isinstance(data.get("ownerUids"), list):
            owners.extend(data["ownerUids"])
        elif data.get("ownerUid"):
            owners.append(data["ownerUid"])

    plan.linked_student_ids = _unique(linked)
    plan.owner_uids = _unique(owners)
    return plan


class ParentMerger:
    def __init__(self, store: DocumentStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or default_settings

    @property
    def _parents(self) -> str:
        return self.settings.GUARDIANS_COLLECTION

    async def build_plans(self, report: MergeReport) -> List[MergePlan]:
        docs = await self.store.stream(self._parents)
        report.total_docs = len(docs)

        groups: Dict[str, List[StoredDocument]] = {}
        for doc in docs:
            key = try_normalize_email(doc.data.get("email"))
            if not key:
                report.skipped_without_email += 1
                continue
            groups.setdefault(key, []).append(doc)

        plans = []
        for key, members in groups.items():
            if len(members) == 1 and members[0].id == key:
                report.already_canonical += 1
                continue
            plans.append(plan_group(key, members))
        return plans

    async def _relink_students(self, plan: MergePlan) -> int:
        relinked = 0
        for duplicate_id in plan.duplicate_ids:
            students = await self.store.where(self.settings.STUDENTS_COLLECTION, "parentId", duplicate_id)
            for student in students:
                await self.store.update(student.path, {"parentId": plan.canonical_id})
                relinked += 1
        return relinked

    async def apply_plan(self, plan: MergePlan, report: MergeReport) -> None:
        # The canonical write must land before anything is deleted
        await self.store.set(doc_path(self._parents, plan.canonical_id), plan.to_document(), merge=True)
        report.students_relinked += await self._relink_students(plan)
        for duplicate_id in plan.duplicate_ids:
            log.info("deleting_duplicate_parent", parent_id=duplicate_id, canonical_id=plan.canonical_id)
            await self.store.delete(doc_path(self._parents, duplicate_id))
            report.duplicates_deleted += 1

    async def run(self, apply: bool = False) -> MergeReport:
        report = MergeReport(apply=apply)
        log.info("parent_merge_started", mode="apply" if apply else "dry-run")

        report.plans = await self.build_plans(report)
        log.info("parent_docs_loaded", total=report.total_docs, groups_to_merge=len(report.plans))

        for plan in report.plans:
            log.info(
                "parent_merge_planned",
                canonical_id=plan.canonical_id,
                sources=plan.source_ids,
                name=plan.name,
                linked_students=len(plan.linked_student_ids),
                owners=len(plan.owner_uids),
            )
            if not apply:
                continue
            try:
                await self.apply_plan(plan, report)
                report.merged.append(plan.canonical_id)
            except Exception as e:
                report.failed.append((plan.canonical_id, str(e)))
                log.error("parent_merge_failed", canonical_id=plan.canonical_id, error=str(e))

        log.info(
            "parent_merge_finished",
            merged=len(report.merged),
            failed=len(report.failed),
            already_canonical=report.already_canonical,
            skipped_without_email=report.skipped_without_email,
        )
        return report

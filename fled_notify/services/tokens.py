# fled_notify/services/tokens.py
"""
Delivery token resolution.

Walks student -> parent -> tokens. A student's guardian is found by, in
order: the canonical key of ``parentEmail`` (direct document read), the
``parentId`` reference, and finally a ``phone`` query on guardians for
legacy records. Each later step runs only when the earlier ones produced
no tokens for that student.

Resolution is best effort: a missing student, guardian, or contact field
contributes nothing and never aborts the batch.
"""
import asyncio
from typing import Any, Dict, Iterable, List, Optional

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.identity import try_normalize_email
from fled_notify.core.logging import log
from fled_notify.store.base import DocumentStore, doc_path


def _clean(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_tokens(data: Optional[Dict[str, Any]]) -> List[str]:
    """
    Tokens held by one guardian or principal document.

    The ``fcmTokens`` collection wins; the legacy single ``fcmToken``
    field is only read when the collection is absent or empty. Entries of
    the collection may be token records (``{"token": ...}``) or bare strings.
    """
    if not data:
        return []

    tokens: List[str] = []
    for entry in data.get("fcmTokens") or []:
        token = _clean(entry.get("token")) if isinstance(entry, dict) else _clean(entry)
        if token and token not in tokens:
            tokens.append(token)
    if tokens:
        return tokens

    legacy = _clean(data.get("fcmToken"))
    return [legacy] if legacy else []


def _merge_into(target: List[str], tokens: Iterable[str]) -> None:
    for token in tokens:
        if token not in target:
            target.append(token)


class TokenResolver:
    def __init__(self, store: DocumentStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or default_settings

    @property
    def _guardians(self) -> str:
        return self.settings.GUARDIANS_COLLECTION

    async def guardian_tokens(self, guardian_id: Optional[str]) -> List[str]:
        """Tokens of one guardian document, by id."""
        if not guardian_id:
            return []
        data = await self.store.get(doc_path(self._guardians, guardian_id))
        if data is None:
            log.info("guardian_not_found", guardian_id=guardian_id)
            return []
        return extract_tokens(data)

    async def tokens_by_email(self, email: str) -> List[str]:
        key = try_normalize_email(email)
        if not key:
            return []
        tokens = await self.guardian_tokens(key)
        log.debug("tokens_by_email", guardian_id=key, count=len(tokens))
        return tokens

    async def tokens_by_phone(self, phone: str) -> List[str]:
        tokens: List[str] = []
        for doc in await self.store.where(self._guardians, "phone", phone):
            _merge_into(tokens, extract_tokens(doc.data))
        log.debug("tokens_by_phone", matches=len(tokens))
        return tokens

    async def student_tokens(self, student_id: str) -> List[str]:
        """Tokens for a single student; never raises."""
        try:
            student = await self.store.get(doc_path(self.settings.STUDENTS_COLLECTION, student_id))
            if student is None:
                log.warning("student_not_found", student_id=student_id)
                return []

            email = _clean(student.get("parentEmail"))
            parent_id = _clean(student.get("parentId"))
            phone = _clean(student.get("parentPhone"))

            if not (email or parent_id or phone):
                log.warning("student_without_parent_contact", student_id=student_id)
                return []

            tokens: List[str] = []
            if email:
                tokens = await self.tokens_by_email(email)
            if not tokens and parent_id:
                tokens = await self.guardian_tokens(parent_id)
            if not tokens and phone:
                tokens = await self.tokens_by_phone(phone)
            return tokens
        except Exception as e:
            log.warning("student_token_resolution_failed", student_id=student_id, error=str(e))
            return []

    async def resolve_tokens(self, student_ids: Iterable[str]) -> List[str]:
        """
        Deduplicated tokens for a set of students.

        Lookups run concurrently; the result keeps the order in which
        tokens were first seen so batching is deterministic.
        """
        ids = [sid for sid in dict.fromkeys(student_ids) if sid]
        per_student = await asyncio.gather(*(self.student_tokens(sid) for sid in ids))

        tokens: List[str] = []
        for found in per_student:
            _merge_into(tokens, found)
        log.info("tokens_resolved", students=len(ids), tokens=len(tokens))
        return tokens

    async def section_guardian_ids(self, section_id: str) -> List[str]:
        students = await self.store.where(self.settings.STUDENTS_COLLECTION, "sectionId", section_id)
        guardian_ids: List[str] = []
        for doc in students:
            gid = _clean(doc.data.get("parentId")) or try_normalize_email(doc.data.get("parentEmail"))
            if gid and gid not in guardian_ids:
                guardian_ids.append(gid)
        return guardian_ids

    async def resolve_section_tokens(self, section_id: Optional[str]) -> List[str]:
        """Tokens of every guardian with a student in the section."""
        if not section_id:
            return []

        guardian_ids = await self.section_guardian_ids(section_id)
        if not guardian_ids:
            log.info("section_without_guardians", section_id=section_id)
            return []

        docs = await asyncio.gather(
            *(self.store.get(doc_path(self._guardians, gid)) for gid in guardian_ids),
            return_exceptions=True,
        )

        tokens: List[str] = []
        for gid, data in zip(guardian_ids, docs):
            if isinstance(data, BaseException):
                log.warning("guardian_fetch_failed", guardian_id=gid, error=str(data))
                continue
            _merge_into(tokens, extract_tokens(data))
        log.info("section_tokens_resolved", section_id=section_id, guardians=len(guardian_ids), tokens=len(tokens))
        return tokens

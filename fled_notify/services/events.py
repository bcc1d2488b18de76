# fled_notify/services/events.py
"""
Entry points fired by the document-created trigger collaborator.

Each call is independent and stateless: resolve tokens, dispatch once,
return the result. Events are not retried here.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.logging import log
from fled_notify.schemas.notification import DispatchResult
from fled_notify.services.dispatcher import NotificationDispatcher
from fled_notify.services.payloads import (
    document_payload,
    message_payload,
    student_ids_of,
    task_payload,
)
from fled_notify.services.tokens import TokenResolver


@dataclass
class DocumentNotifyOutcome:
    result: DispatchResult
    total_tokens: int = 0
    message: Optional[str] = None


class NotificationEvents:
    def __init__(self, resolver: TokenResolver, dispatcher: NotificationDispatcher, settings: Settings | None = None):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.settings = settings or default_settings

    async def on_task_created(self, task_id: str, task: Optional[Dict[str, Any]]) -> Optional[DispatchResult]:
        if not task or not task.get("sectionId"):
            log.info("task_skipped", task_id=task_id, reason="no_section")
            return None

        tokens = await self.resolver.resolve_section_tokens(task["sectionId"])
        if not tokens:
            log.info("task_skipped", task_id=task_id, reason="no_tokens")
            return None

        return await self.dispatcher.dispatch(task_payload(task_id, task, self.settings), tokens)

    async def on_message_created(self, message_id: str, message: Optional[Dict[str, Any]]) -> Optional[DispatchResult]:
        if not message:
            return None

        if message.get("toParentId"):
            tokens = await self.resolver.guardian_tokens(message["toParentId"])
        elif message.get("sectionId"):
            tokens = await self.resolver.resolve_section_tokens(message["sectionId"])
        else:
            log.info("message_skipped", message_id=message_id, reason="no_recipient")
            return None

        if not tokens:
            log.info("message_skipped", message_id=message_id, reason="no_tokens")
            return None

        return await self.dispatcher.dispatch(message_payload(message_id, message, self.settings), tokens)

    async def on_document_notify(self, collection: str, doc_id: str, data: Dict[str, Any]) -> DocumentNotifyOutcome:
        """Administrative notify for a message or attendance document, targeted by its student ids."""
        student_ids = student_ids_of(data)
        if not student_ids:
            return DocumentNotifyOutcome(result=DispatchResult(), message="No student IDs found")

        tokens = await self.resolver.resolve_tokens(student_ids)
        if not tokens:
            return DocumentNotifyOutcome(result=DispatchResult(), message="No FCM tokens found for students")

        payload = document_payload(collection, doc_id, data, self.settings)
        result = await self.dispatcher.dispatch(payload, tokens)
        log.info("document_notified", collection=collection, doc_id=doc_id, sent=result.sent, failed=result.failed)
        return DocumentNotifyOutcome(result=result, total_tokens=len(tokens))

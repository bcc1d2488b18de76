# fled_notify/services/sanitizer.py
"""
Removes tokens the push provider reported as unregistered or invalid.

Cleanup is advisory: every removal for every token is attempted on its
own, failures are logged and counted, and nothing is raised to the caller.

Covered shapes: device records in the devices collection group, the
legacy single ``fcmToken`` field, and bare-string entries of ``fcmTokens``.
Token records written by ``POST /tokens`` (``{token, device, addedAt}``)
are not removed: array-contains only matches whole entries, so a record
cannot be found from its token alone. Such a stale record keeps being
sent to (and failing) until the client re-registers.
"""
from dataclasses import dataclass
from typing import Iterable

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.core.logging import log
from fled_notify.store.base import DELETE_FIELD, ArrayRemove, DocumentStore


@dataclass
class PurgeReport:
    tokens: int = 0
    devices_removed: int = 0
    fields_cleared: int = 0
    array_entries_removed: int = 0
    errors: int = 0


class TokenSanitizer:
    def __init__(self, store: DocumentStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or default_settings

    @property
    def _token_holders(self):
        return (self.settings.PRINCIPALS_COLLECTION, self.settings.GUARDIANS_COLLECTION)

    async def _remove_device_records(self, token: str, report: PurgeReport) -> None:
        docs = await self.store.collection_group_where(self.settings.DEVICES_COLLECTION_GROUP, "token", token)
        for doc in docs:
            try:
                await self.store.delete(doc.path)
                report.devices_removed += 1
            except Exception as e:
                report.errors += 1
                log.warning("device_record_delete_failed", path=doc.path, error=str(e))

    async def _clear_single_token_fields(self, token: str, collection: str, report: PurgeReport) -> None:
        for doc in await self.store.where(collection, "fcmToken", token):
            try:
                await self.store.update(doc.path, {"fcmToken": DELETE_FIELD})
                report.fields_cleared += 1
            except Exception as e:
                report.errors += 1
                log.warning("token_field_clear_failed", path=doc.path, error=str(e))

    async def _remove_array_entries(self, token: str, collection: str, report: PurgeReport) -> None:
        # Only bare-string entries can be matched by value; token records are dicts
        for doc in await self.store.where(collection, "fcmTokens", token, op="array_contains"):
            try:
                await self.store.update(doc.path, {"fcmTokens": ArrayRemove([token])})
                report.array_entries_removed += 1
            except Exception as e:
                report.errors += 1
                log.warning("token_array_remove_failed", path=doc.path, error=str(e))

    async def _attempt(self, step, token: str, report: PurgeReport, *args) -> None:
        try:
            await step(token, *args, report)
        except Exception as e:
            report.errors += 1
            log.warning("token_cleanup_failed", step=step.__name__.lstrip("_"), error=str(e))

    async def purge(self, tokens: Iterable[str]) -> PurgeReport:
        tokens = [t for t in dict.fromkeys(tokens) if t]
        report = PurgeReport(tokens=len(tokens))
        if not tokens:
            return report

        log.info("token_cleanup_started", tokens=len(tokens))
        for token in tokens:
            await self._attempt(self._remove_device_records, token, report)
            for collection in self._token_holders:
                await self._attempt(self._clear_single_token_fields, token, report, collection)
                await self._attempt(self._remove_array_entries, token, report, collection)

        log.info(
            "token_cleanup_finished",
            tokens=report.tokens,
            devices_removed=report.devices_removed,
            fields_cleared=report.fields_cleared,
            array_entries_removed=report.array_entries_removed,
            errors=report.errors,
        )
        return report

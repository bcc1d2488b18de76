# fled_notify/services/payloads.py
from typing import Any, Dict

from fled_notify.core.config import Settings, settings as default_settings
from fled_notify.schemas.notification import NotificationPayload

NOTIFY_COLLECTIONS = ("messages", "attendanceSessions", "attendance")
ATTENDANCE_COLLECTIONS = ("attendanceSessions", "attendance")
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"


def task_payload(task_id: str, task: Dict[str, Any], settings: Settings | None = None) -> NotificationPayload:
    settings = settings or default_settings
    title = f"New {task.get('type') or 'Task'}"
    if task.get("title"):
        body = str(task["title"])
        if task.get("deadline"):
            body += f" · Due {task['deadline']}"
    else:
        body = "A new task has been posted."
    return NotificationPayload(
        title=title,
        body=body[:settings.MESSAGE_BODY_LIMIT],
        data={"type": "task", "taskId": task_id, "sectionId": str(task.get("sectionId") or "")},
    )


def message_payload(message_id: str, message: Dict[str, Any], settings: Settings | None = None) -> NotificationPayload:
    settings = settings or default_settings
    title = "New announcement" if message.get("sectionId") else "New message from teacher"
    return NotificationPayload(
        title=title,
        body=str(message.get("content") or "")[:settings.MESSAGE_BODY_LIMIT],
        data={
            "type": "message",
            "messageId": message_id,
            "sectionId": str(message.get("sectionId") or ""),
            "toParentId": str(message.get("toParentId") or ""),
        },
    )


def document_payload(
    collection: str,
    doc_id: str,
    data: Dict[str, Any],
    settings: Settings | None = None,
) -> NotificationPayload:
    """Payload for an administrative /notify call on a message or attendance record."""
    settings = settings or default_settings
    if collection in ATTENDANCE_COLLECTIONS:
        title = "Attendance Update"
        body = f"Attendance marked: {data.get('status') or 'Updated'}"
        if data.get("notes"):
            body += f" - {str(data['notes'])[:100]}"
    elif collection == "messages":
        title = data.get("title") or "New Message from Teacher"
        body = str(data.get("content") or "")[:settings.NOTIFY_MESSAGE_BODY_LIMIT]
    else:
        raise ValueError(f"Unsupported collection: {collection}")

    return NotificationPayload(
        title=title,
        body=body,
        data={"type": collection, "docId": doc_id, "click_action": CLICK_ACTION},
    )


def student_ids_of(data: Dict[str, Any]) -> list[str]:
    listed = data.get("studentIds")
    ids = [sid for sid in listed if isinstance(sid, str) and sid] if isinstance(listed, list) else []
    if not ids and isinstance(data.get("studentId"), str) and data["studentId"]:
        ids = [data["studentId"]]
    return ids

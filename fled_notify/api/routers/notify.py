# fled_notify/api/routers/notify.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from fled_notify.api.deps.auth import AuthContext, get_auth_ctx
from fled_notify.api.deps.services import Services, get_services
from fled_notify.core.logging import log
from fled_notify.schemas.notify import NotifyRequest, NotifyResponse
from fled_notify.services.payloads import NOTIFY_COLLECTIONS
from fled_notify.store.base import doc_path

router = APIRouter(tags=["Notifications"])

@router.post("/notify", response_model=NotifyResponse, response_model_exclude_none=True)
async def notify(
    body: NotifyRequest,
    ctx: AuthContext = Depends(get_auth_ctx),
    services: Services = Depends(get_services),
):
    """Send the notification for one message or attendance document."""
    if not body.collection or not body.doc_id:
        raise HTTPException(status_code=400, detail="Missing collection or docId")
    if body.collection not in NOTIFY_COLLECTIONS:
        raise HTTPException(status_code=400, detail="Invalid collection")

    try:
        data = await services.store.get(doc_path(body.collection, body.doc_id))
        if data is None:
            raise HTTPException(status_code=404, detail="Document not found")

        outcome = await services.events().on_document_notify(body.collection, body.doc_id, data)
    except HTTPException:
        raise
    except Exception as e:
        log.exception("notify_failed", collection=body.collection, doc_id=body.doc_id, uid=ctx.uid)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(e)})

    if outcome.message:
        return NotifyResponse(sent=0, message=outcome.message)

    log.info("notify_sent", collection=body.collection, doc_id=body.doc_id, uid=ctx.uid, sent=outcome.result.sent)
    return NotifyResponse(
        success=True,
        sent=outcome.result.sent,
        failed=outcome.result.failed,
        total_tokens=outcome.total_tokens,
        invalid_tokens_removed=len(outcome.result.invalid_tokens),
    )

# fled_notify/api/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["Health"])

@router.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(tz=timezone.utc).isoformat()}

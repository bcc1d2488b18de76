# fled_notify/api/routers/tokens.py
from fastapi import APIRouter, Depends, HTTPException

from fled_notify.api.deps.auth import AuthContext, get_auth_ctx
from fled_notify.api.deps.services import Services, get_services
from fled_notify.schemas.notify import TokenRegistration, TokenRegistrationOut
from fled_notify.services.registration import register_token

router = APIRouter(prefix="/tokens", tags=["Tokens"])

@router.post("", response_model=TokenRegistrationOut)
async def register_device_token(
    payload: TokenRegistration,
    ctx: AuthContext = Depends(get_auth_ctx),
    services: Services = Depends(get_services),
):
    try:
        record = await register_token(services.store, ctx.uid, payload.token, payload.device, services.settings)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TokenRegistrationOut(uid=ctx.uid, token=record["token"], device=record["device"])

# fled_notify/schemas/notify.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NotifyRequest(BaseModel):
    # Both optional so missing fields surface as 400, not 422
    collection: str | None = None
    doc_id: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotifyResponse(BaseModel):
    success: bool | None = None
    sent: int = 0
    failed: int | None = None
    total_tokens: int | None = None
    invalid_tokens_removed: int | None = None
    message: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenRegistration(BaseModel):
    token: str
    device: str | None = None


class TokenRegistrationOut(BaseModel):
    uid: str
    token: str
    device: str | None = None

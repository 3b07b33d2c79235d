"""Push notification registration: device tokens per user."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from surfcheck.api.dependencies import get_user_id
from surfcheck.db.session import get_db
from surfcheck.models.push_token import PushToken

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterPushBody(BaseModel):
    device_token: str = Field(..., min_length=1, max_length=256, description="APNs device token (hex string)")
    platform: str = Field(default="ios", pattern="^ios$", description="APNs is the only transport")


@router.post("/push/register")
def register_push_token(body: RegisterPushBody, db: Session = Depends(get_db), user_id: str = Depends(get_user_id)):
    """
    Register a device for push notifications.
    Idempotent: the same token is upserted (moved to this user, updated_at refreshed).
    """
    token_str = body.device_token.strip()
    existing = db.query(PushToken).filter(PushToken.device_token == token_str).first()
    if existing:
        existing.user_id = user_id
        existing.platform = body.platform
        existing.updated_at = datetime.now(timezone.utc)
        db.commit()
        return {"ok": True, "message": "Token already registered"}
    db.add(PushToken(device_token=token_str, platform=body.platform, user_id=user_id))
    db.commit()
    logger.info("Registered push token for user=%s platform=%s", user_id, body.platform)
    return {"ok": True, "message": "Token registered"}

"""Phone verification routes: send-otp, check-otp."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from house_hunt.app.config import get_settings
from house_hunt.domain.schemas import CheckOtpRequest, SendOtpRequest
from house_hunt.infra.database import get_db
from house_hunt.services.otp_service import InvalidOtpError, PhoneVerifier
from house_hunt.services.sms_service import SMSService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_sms_service(request: Request) -> SMSService:
    """Dependency: the SMSService created by the application lifespan."""
    return request.app.state.sms_service


@router.post("/send-otp")
async def send_otp(
    body: SendOtpRequest | None = None,
    db: AsyncSession = Depends(get_db),
    sms: SMSService = Depends(get_sms_service),
):
    body = body or SendOtpRequest()
    if not body.phone:
        raise HTTPException(status_code=400, detail="phone required")

    verifier = PhoneVerifier(db, sms, get_settings())
    try:
        await verifier.issue_code(body.phone)
    except Exception:
        logger.exception("send-otp error for %s", body.phone)
        raise HTTPException(status_code=500, detail="failed to send otp")

    return {"ok": True}


@router.post("/check-otp")
async def check_otp(body: CheckOtpRequest | None = None, db: AsyncSession = Depends(get_db)):
    body = body or CheckOtpRequest()
    if not body.phone or not body.code:
        raise HTTPException(status_code=400, detail="phone and code required")

    verifier = PhoneVerifier(db, settings=get_settings())
    try:
        buyer_id = await verifier.verify_code(body.phone, body.code)
    except InvalidOtpError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("check-otp error for %s", body.phone)
        raise HTTPException(status_code=500, detail="failed to verify")

    return {"ok": True, "buyerId": buyer_id}

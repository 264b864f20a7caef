"""OTP Service: issues and verifies phone-possession passcodes.

State per phone: no pending code -> pending code(s) outstanding -> verified.
Several codes may be outstanding for one phone; each stays valid until it is
used or expires. Codes are never purged.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from house_hunt.app.config import Settings, get_settings
from house_hunt.domain.models import OtpCode
from house_hunt.services.buyer_service import upsert_buyer_by_phone
from house_hunt.services.sms_service import SMSService

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


class OtpError(Exception):
    """Base class for OTP failures."""


class InvalidOtpError(OtpError):
    """No unused, unexpired code matches the phone + code pair."""

    def __init__(self, message: str = "invalid or expired code"):
        super().__init__(message)


def utcnow() -> datetime:
    """Naive UTC now; SQLite stores naive datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_code() -> str:
    """Return a 6-digit code drawn uniformly from 100000-999999 (CSPRNG)."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OtpStore:
    """Persists OtpCode rows and answers validity queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, phone: str, code: str, ttl: timedelta) -> OtpCode:
        otp = OtpCode(
            phone=phone,
            code=code,
            expires_at=utcnow() + ttl,
            used=False,
        )
        self.db.add(otp)
        await self.db.flush()
        return otp

    async def find_valid(self, phone: str, code: str, now: datetime | None = None) -> OtpCode | None:
        """Most recently issued unused code for phone+code expiring strictly after ``now``."""
        now = now or utcnow()
        result = await self.db.execute(
            select(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.code == code,
                OtpCode.used.is_(False),
                OtpCode.expires_at > now,
            )
            .order_by(OtpCode.expires_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def consume(self, otp_id: str) -> bool:
        """Mark a code used. Compare-and-swap: False if it was already used."""
        result = await self.db.execute(
            update(OtpCode)
            .where(OtpCode.id == otp_id, OtpCode.used.is_(False))
            .values(used=True, used_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class PhoneVerifier:
    """Orchestrates code issuance and verification for a phone number."""

    def __init__(self, db: AsyncSession, sms: SMSService | None = None, settings: Settings | None = None):
        self.db = db
        self.sms = sms
        self.settings = settings or get_settings()
        self.store = OtpStore(db)

    async def issue_code(self, phone: str) -> OtpCode:
        """Create and deliver a new code for ``phone``.

        The code is committed before delivery is attempted; a delivery
        failure is logged and does not undo issuance.
        """
        code = generate_code()
        await upsert_buyer_by_phone(self.db, phone)
        otp = await self.store.create(
            phone, code, timedelta(minutes=self.settings.otp_ttl_minutes)
        )
        await self.db.commit()

        if self.sms is None or not self.sms.configured:
            logger.warning("[DEV] OTP for %s: %s", phone, code)
            return otp

        result = await self.sms.send_sms(
            phone,
            f"{self.settings.sms_brand_name} code: {code}. Reply STOP to opt out.",
        )
        if not result.get("ok"):
            logger.error(
                "OTP %s for %s stored but delivery failed: %s",
                otp.id, phone, result.get("error"),
            )
        return otp

    async def verify_code(self, phone: str, code: str) -> str:
        """Consume a matching code, mark the buyer verified, return the buyer id.

        Raises:
            InvalidOtpError: no unused, unexpired code matches, or another
                request consumed it first.
        """
        otp = await self.store.find_valid(phone, code)
        if otp is None:
            raise InvalidOtpError()
        otp_id = otp.id

        buyer = await upsert_buyer_by_phone(self.db, phone)

        if not await self.store.consume(otp_id):
            logger.warning("OTP %s for %s consumed by a concurrent request", otp_id, phone)
            await self.db.rollback()
            raise InvalidOtpError()

        buyer.phone_verified = True
        buyer.verified_at = utcnow()
        await self.db.commit()

        logger.info("Verified phone %s for buyer %s", phone, buyer.id)
        return buyer.id

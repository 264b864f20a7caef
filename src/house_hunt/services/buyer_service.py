"""Buyer lookups and the upsert-by-phone used by OTP issuance and verification."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from house_hunt.domain.models import Buyer

logger = logging.getLogger(__name__)


class BuyerNotFoundError(LookupError):
    """Raised when a buyer id does not resolve to a Buyer row."""


async def get_buyer(db: AsyncSession, buyer_id: str) -> Buyer | None:
    return await db.get(Buyer, buyer_id)


async def get_buyer_by_phone(db: AsyncSession, phone: str) -> Buyer | None:
    result = await db.execute(select(Buyer).where(Buyer.phone == phone))
    return result.scalar_one_or_none()


async def upsert_buyer_by_phone(db: AsyncSession, phone: str) -> Buyer:
    """Return the buyer for ``phone``, creating it if absent.

    An existing buyer is returned untouched. If a concurrent request inserts
    the same phone first, the unique constraint fires; the pending work is
    rolled back and the winner's row is returned.
    """
    buyer = await get_buyer_by_phone(db, phone)
    if buyer:
        return buyer

    buyer = Buyer(phone=phone, phone_verified=False)
    db.add(buyer)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        buyer = await get_buyer_by_phone(db, phone)
        if buyer is None:
            raise
        logger.info("Buyer for %s created concurrently; reusing %s", phone, buyer.id)
        return buyer

    logger.info("Created buyer %s for %s", buyer.id, phone)
    return buyer

"""Conversation handler: runs one buyer chat turn (extract -> merge -> follow-up)."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from house_hunt.agents import ConversationTurn, extract_criteria, next_question
from house_hunt.services.buyer_service import BuyerNotFoundError, get_buyer
from house_hunt.services.saved_search_service import SavedSearchService

logger = logging.getLogger(__name__)


class ConversationHandler:
    """Turns a free-text buyer message into saved-search updates and a reply."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.saved_searches = SavedSearchService(db)

    async def handle(self, buyer_id: str, message: str) -> ConversationTurn:
        if await get_buyer(self.db, buyer_id) is None:
            raise BuyerNotFoundError(buyer_id)

        extracted = extract_criteria(message)
        logger.info("Buyer %s turn extracted %s", buyer_id, sorted(extracted) or "nothing")

        saved = await self.saved_searches.merge(buyer_id, extracted)
        criteria = saved.criteria if saved is not None else extracted

        return ConversationTurn(
            reply=next_question(criteria),
            saved_search=saved,
            extracted=extracted,
        )

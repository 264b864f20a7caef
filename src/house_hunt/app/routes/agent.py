"""Buyer chat route: one message in, follow-up question and saved search out."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from house_hunt.domain.schemas import AgentMessageRequest, SavedSearchResponse
from house_hunt.infra.database import get_db
from house_hunt.services.buyer_service import BuyerNotFoundError
from house_hunt.services.conversation_service import ConversationHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"])


@router.post("/message")
async def agent_message(
    body: AgentMessageRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Extract criteria from the message, merge them, and ask the next question."""
    body = body or AgentMessageRequest()
    if not body.buyer_id or not body.message:
        raise HTTPException(status_code=400, detail="buyerId and message required")

    handler = ConversationHandler(db)
    try:
        turn = await handler.handle(body.buyer_id, body.message)
    except BuyerNotFoundError:
        raise HTTPException(status_code=404, detail="buyer not found")
    except Exception:
        logger.exception("agent/message error for buyer %s", body.buyer_id)
        raise HTTPException(status_code=500, detail="agent error")

    saved = None
    if turn.saved_search is not None:
        saved = SavedSearchResponse.model_validate(turn.saved_search).model_dump()

    return {"reply": turn.reply, "savedSearch": saved}

"""Saved Search Service: merges extracted criteria into the buyer's profile.

Each buyer has one logical SavedSearch; every read takes the earliest-created
row. Merges for the same buyer are serialised in-process by a per-buyer
asyncio lock. Writers in other processes are caught by the ORM version
check (StaleDataError) and the merge is re-applied on fresh state.
"""

import asyncio
import logging
import weakref

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from house_hunt.domain.models import SavedSearch

logger = logging.getLogger(__name__)

MERGE_ATTEMPTS = 3

_buyer_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def buyer_lock(buyer_id: str) -> asyncio.Lock:
    """Return the process-wide lock guarding ``buyer_id``'s saved search."""
    lock = _buyer_locks.get(buyer_id)
    if lock is None:
        lock = asyncio.Lock()
        _buyer_locks[buyer_id] = lock
    return lock


def merge_criteria(existing: dict | None, partial: dict) -> dict:
    """Right-biased shallow merge: keys in ``partial`` overwrite, others survive."""
    return {**(existing or {}), **partial}


class SavedSearchService:
    """Reads and merges the buyer's single saved search."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_buyer(self, buyer_id: str) -> SavedSearch | None:
        """Return the buyer's earliest-created saved search, if any."""
        result = await self.db.execute(
            select(SavedSearch)
            .where(SavedSearch.buyer_id == buyer_id)
            .order_by(SavedSearch.created_at.asc(), SavedSearch.id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def merge(self, buyer_id: str, partial: dict) -> SavedSearch | None:
        """Merge ``partial`` into the buyer's saved search and commit.

        Creates the saved search on the buyer's first non-empty turn. Returns
        None without touching storage when ``partial`` is empty.

        Raises:
            StaleDataError: the record kept changing underneath us for
                MERGE_ATTEMPTS attempts.
        """
        if not partial:
            return None

        async with buyer_lock(buyer_id):
            for attempt in range(1, MERGE_ATTEMPTS + 1):
                try:
                    return await self._merge_once(buyer_id, partial)
                except StaleDataError:
                    await self.db.rollback()
                    if attempt == MERGE_ATTEMPTS:
                        raise
                    logger.warning(
                        "Saved search for buyer %s changed concurrently; re-merging (attempt %d/%d)",
                        buyer_id, attempt + 1, MERGE_ATTEMPTS,
                    )
        return None  # pragma: no cover

    async def _merge_once(self, buyer_id: str, partial: dict) -> SavedSearch:
        search = await self.get_for_buyer(buyer_id)
        if search is None:
            search = SavedSearch(buyer_id=buyer_id, criteria=dict(partial))
            self.db.add(search)
            logger.info("Created saved search for buyer %s: %s", buyer_id, sorted(partial))
        else:
            # Assign a new mapping so the JSON column is flagged dirty
            search.criteria = merge_criteria(search.criteria, partial)
            logger.info("Merged %s into saved search %s", sorted(partial), search.id)

        await self.db.commit()
        return search

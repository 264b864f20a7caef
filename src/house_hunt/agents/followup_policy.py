"""Follow-up policy: picks the next question to steer the buyer.

Checked in fixed priority order (price -> bedrooms -> must-haves). The
policy has no memory: a buyer who never gives a price is asked for one
on every turn.
"""

from collections.abc import Mapping

PRICE_QUESTION = "What price range are you comfortable with? (e.g., $250000 - $450000)"
BEDS_QUESTION = "How many bedrooms minimum?"
MUST_HAVES_QUESTION = "Any must-haves (pool, office, garage) or dealbreakers?"


def next_question(criteria: Mapping | None) -> str:
    """Return the next question for the given (merged) criteria."""
    criteria = criteria or {}
    if criteria.get("price_max") is None:
        return PRICE_QUESTION
    if criteria.get("beds_min") is None:
        return BEDS_QUESTION
    return MUST_HAVES_QUESTION

"""Deterministic chat agents for buyer qualification.

Agents:
1. CriteriaExtractor (regex extraction of search criteria)
2. FollowupPolicy (next question from the merged criteria)
"""

from .contracts import ConversationTurn, ExtractionRule
from .criteria_extractor import extract_criteria
from .followup_policy import next_question

__all__ = [
    "ConversationTurn",
    "ExtractionRule",
    "extract_criteria",
    "next_question",
]

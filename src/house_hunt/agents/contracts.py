"""Typed dataclasses for the chat agent I/O contracts."""

from dataclasses import dataclass, field
from re import Pattern
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from house_hunt.domain.models import SavedSearch


@dataclass(frozen=True)
class ExtractionRule:
    """One declarative text-to-criteria rule.

    ``transform`` returns the criteria fields the rule produces. It receives
    the first regex match, or the list of every match when ``find_all`` is set.
    """
    name: str
    pattern: Pattern[str]
    transform: Callable[[Any], dict]
    find_all: bool = False


@dataclass
class ConversationTurn:
    """Output of one ConversationHandler turn."""
    reply: str
    saved_search: "SavedSearch | None" = None  # None when nothing was merged
    extracted: dict = field(default_factory=dict)

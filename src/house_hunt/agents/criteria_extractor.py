"""Criteria Extractor: DETERMINISTIC only, no LLM calls.

Regex-based extraction of buyer search criteria from a single chat turn.
Rules are independent: a message may match none, one or several of them.
Only matched fields appear in the output.

Feature detection is a keyword heuristic. A negation word ("no", "not",
"without", "avoid", "don't want") turns a feature into an avoid when it is
followed by at most three words before the feature ("not a fan of pools"),
with no punctuation or "but" in between. Any other mention of a feature
word counts as a must-have, so a neutral aside such as "HOA under $200"
is still read as wanting an HOA.
"""

import logging
import re

from house_hunt.domain.schemas import Criteria

from .contracts import ExtractionRule

logger = logging.getLogger(__name__)

# Recognised zones (school districts / towns), canonical spelling
ZONES = ["Sterlington", "West Monroe", "Monroe"]

# Canonical feature label -> regex fragment
FEATURES = {
    "pool": r"pools?",
    "office": r"(?:home\s+)?offices?",
    "garage": r"garages?",
    "fenced yard": r"fenced(?:[-\s]+in)?\s+(?:back)?yards?",
    "shop": r"workshops?|shop\s+(?:buildings?|space)",
    "basement": r"basements?",
    "fireplace": r"fireplaces?",
    "HOA": r"hoas?",
    "new construction": r"new\s+(?:construction|build)",
    "acreage": r"acre(?:s|age)?",
}

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# "$250000 - $450000", "250000-450000"
PRICE_RANGE_PATTERN = re.compile(r'\$?(?<!\d)(\d{3,12})\s*-\s*\$?(\d{3,12})(?!\d)')

BEDS_PATTERN = re.compile(r'(?<!\d)(\d{1,3})\s*(bed|beds|br)', re.IGNORECASE)

BATHS_PATTERN = re.compile(r'(?<!\d)(\d{1,3})\s*(bath|baths|ba)', re.IGNORECASE)

# Longest names first so "West Monroe" wins over "Monroe" at the same position
ZONE_PATTERN = re.compile(
    '(' + '|'.join(re.escape(z) for z in sorted(ZONES, key=len, reverse=True)) + ')',
    re.IGNORECASE,
)
_ZONE_CANONICAL = {z.lower(): z for z in ZONES}

_FEATURE_GROUPS = {label: re.sub(r'\W+', '_', label.lower()) for label in FEATURES}

# Up to three filler words ("not a fan of") between negation and feature
NEGATION = r"(?:not|no|without|avoid|don['’]?t\s+want)(?:\s+(?!but\b)[\w'’]+){0,3}?\s+"

# An optional leading negation turns a feature into an avoid
FEATURE_PATTERN = re.compile(
    r'(?P<negation>\b' + NEGATION + r')?\b(?:'
    + '|'.join(f'(?P<{_FEATURE_GROUPS[label]}>{frag})' for label, frag in FEATURES.items())
    + r')\b',
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

def _price_range(match) -> dict:
    price_min, price_max = int(match.group(1)), int(match.group(2))
    if price_min > price_max:
        # Accepted as stated; the buyer can correct it on a later turn
        logger.debug("Inverted price range %d-%d accepted", price_min, price_max)
    return {"price_min": price_min, "price_max": price_max}


def _beds(match) -> dict:
    return {"beds_min": int(match.group(1))}


def _baths(match) -> dict:
    return {"baths_min": int(match.group(1))}


def _zone(match) -> dict:
    return {"zones": [_ZONE_CANONICAL[match.group(1).lower()]]}


def _feature_label(match) -> str:
    for label, group in _FEATURE_GROUPS.items():
        if match.group(group):
            return label
    raise ValueError(f"feature match without a feature group: {match.group(0)!r}")


def _features(matches) -> dict:
    must_haves: list[str] = []
    avoid: list[str] = []
    for match in matches:
        label = _feature_label(match)
        bucket = avoid if match.group("negation") else must_haves
        if label not in bucket:
            bucket.append(label)

    out = {}
    # A feature the buyer rules out anywhere in the turn is never a must-have
    must_haves = [label for label in must_haves if label not in avoid]
    if must_haves:
        out["must_haves"] = must_haves
    if avoid:
        out["avoid"] = avoid
    return out


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

RULES: list[ExtractionRule] = [
    ExtractionRule("price_range", PRICE_RANGE_PATTERN, _price_range),
    ExtractionRule("beds", BEDS_PATTERN, _beds),
    ExtractionRule("baths", BATHS_PATTERN, _baths),
    ExtractionRule("zone", ZONE_PATTERN, _zone),
    ExtractionRule("features", FEATURE_PATTERN, _features, find_all=True),
]


def extract_criteria(text: str) -> dict:
    """Extract partial search criteria from one chat message.

    Args:
        text: The raw buyer message.

    Returns:
        A mapping containing only the criteria fields that matched, e.g.
        ``{"price_min": 250000, "price_max": 450000, "beds_min": 3,
        "zones": ["Sterlington"]}``. Unrelated text yields ``{}``.
    """
    if not text or not text.strip():
        return {}

    fields: dict = {}
    for rule in RULES:
        if rule.find_all:
            matches = list(rule.pattern.finditer(text))
            if matches:
                fields.update(rule.transform(matches))
        else:
            match = rule.pattern.search(text)
            if match:
                fields.update(rule.transform(match))

    return Criteria(**fields).model_dump(exclude_none=True)

"""
Local label parser

Derives ExtractedFields straight from raw text (an OCR dump or a model's
free-form reply) with ordered regex rules. No network, never raises:
anything that is not found comes back as "" or None.

Every field has its own ordered list of rules and the first rule that
matches wins, so anchors can be added or reordered one at a time.
"""

import re
from typing import Callable, List, NamedTuple, Optional, Pattern, Sequence

from labelscan.models import ExtractedFields, Number, parse_number

# A number as printed on labels: "2480", "2,480", "2480.5"
NUMBER = r"(\d[\d,]*(?:\.\d+)?)"

# Plausible depth values for the unanchored fallback (inclusive)
DEPTH_MIN = 100
DEPTH_MAX = 50000


class DepthRange(NamedTuple):
    depth_from: Optional[Number]
    depth_to: Optional[Number]


# ==========================================
# RULES (evaluated top to bottom, first match wins)
# ==========================================

WELL_PATTERNS: List[Pattern] = [
    re.compile(r"\bWell[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bWell[ \t]*Name[ \t]*:?[ \t]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bWell[ \t]+(?!Name\b)([^\n\r]+)", re.IGNORECASE),
]

COMPANY_PATTERNS: List[Pattern] = [
    re.compile(r"\bCompany[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bOperator[ \t]*:[ \t]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bCompany[ \t]*Name\b[ \t]*:?[ \t]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bCompany[ \t]+(?!Name\b)([^\n\r]+)", re.IGNORECASE),
    re.compile(r"\bOperator[ \t]+([^\n\r]+)", re.IGNORECASE),
]

DEPTH_RANGE_PATTERN = re.compile(
    rf"\bDepth[:\s]+{NUMBER}\s*(?:[-–—]+|to)\s*{NUMBER}", re.IGNORECASE
)
DEPTH_FROM_PATTERN = re.compile(rf"\bFrom[:\s]+{NUMBER}", re.IGNORECASE)
DEPTH_TO_PATTERN = re.compile(rf"\bTo[:\s]+{NUMBER}", re.IGNORECASE)
NUMBER_PAIR_PATTERN = re.compile(rf"{NUMBER}\s*[-–—]\s*{NUMBER}")

BOX_CODE_PATTERNS: List[Pattern] = [
    # 040.BB.020
    re.compile(r"\b(\d{3}\.[A-Z]{2}\.\d{3})\b", re.IGNORECASE),
    # 001.02.003
    re.compile(r"\b(\d{3}\.\d{2}\.\d{3})\b"),
    # any 3.2.3 alphanumeric
    re.compile(r"\b([A-Z0-9]{3}\.[A-Z0-9]{2}\.[A-Z0-9]{3})\b", re.IGNORECASE),
    re.compile(r"\bBox[ \t]*Code[:\s]+([^\n\r]+)", re.IGNORECASE),
    # OCR dropped the dots
    re.compile(r"\b(\d{3}[ \t]+[A-Z]{2}[ \t]+\d{3})\b", re.IGNORECASE),
    re.compile(r"\b(\d{3}[ \t]+\d{2}[ \t]+\d{3})\b"),
]


def _first_capture(patterns: Sequence[Pattern], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return ""


# ==========================================
# FIELDS
# ==========================================

def parse_well(text: str) -> str:
    """Well name after "Well:" (preferred) or "Well Name:", "" if absent"""
    return _first_capture(WELL_PATTERNS, text or "")


def parse_company(text: str) -> str:
    """Company name after "Company:" (preferred), "Operator:" or "Company Name:", "" if absent"""
    return _first_capture(COMPANY_PATTERNS, text or "")


def _depth_from_range_anchor(text: str) -> Optional[DepthRange]:
    # "Depth: 2,480 - 2,490", "Depth: 2480 to 2490"
    match = DEPTH_RANGE_PATTERN.search(text)
    if not match:
        return None
    return DepthRange(parse_number(match.group(1)), parse_number(match.group(2)))


def _depth_from_split_anchors(text: str) -> Optional[DepthRange]:
    # "From: 2480" and/or "To: 2490", either side may be missing
    from_match = DEPTH_FROM_PATTERN.search(text)
    to_match = DEPTH_TO_PATTERN.search(text)
    if not from_match and not to_match:
        return None
    return DepthRange(
        parse_number(from_match.group(1)) if from_match else None,
        parse_number(to_match.group(1)) if to_match else None,
    )


def _is_plausible_depth(value: Optional[Number]) -> bool:
    return value is not None and DEPTH_MIN <= value <= DEPTH_MAX


def _depth_from_plausible_pair(text: str) -> Optional[DepthRange]:
    # Unanchored "X - Y" pairs; dates and codes fall outside the depth range
    for match in NUMBER_PAIR_PATTERN.finditer(text):
        first = parse_number(match.group(1))
        second = parse_number(match.group(2))
        if _is_plausible_depth(first) and _is_plausible_depth(second):
            return DepthRange(first, second)
    return None


DEPTH_STRATEGIES: List[Callable[[str], Optional[DepthRange]]] = [
    _depth_from_range_anchor,
    _depth_from_split_anchors,
    _depth_from_plausible_pair,
]


def parse_depth(text: str) -> DepthRange:
    """
    Depth range from label text.

    Tries, in order: a "Depth: X - Y" anchor, separate "From:"/"To:"
    anchors, then the first dash-joined pair with both numbers inside
    [DEPTH_MIN, DEPTH_MAX]. Returns (None, None) when nothing matches.
    """
    text = text or ""
    for strategy in DEPTH_STRATEGIES:
        result = strategy(text)
        if result is not None:
            return result
    return DepthRange(None, None)


def normalize_box_code(raw: str) -> str:
    """Whitespace runs become dots, then upper-case: 040 bb 020 -> 040.BB.020"""
    return re.sub(r"\s+", ".", raw.strip()).upper()


def parse_box_code(text: str) -> str:
    """Box code in XXX.XX.XXX form, normalized to dots and upper case"""
    for pattern in BOX_CODE_PATTERNS:
        match = pattern.search(text or "")
        if match and match.group(1).strip():
            return normalize_box_code(match.group(1))
    return ""


# ==========================================
# AGGREGATE
# ==========================================

def parse_sample_label(text: str) -> ExtractedFields:
    depth = parse_depth(text)
    return ExtractedFields(
        well=parse_well(text),
        company=parse_company(text),
        depth_from=depth.depth_from,
        depth_to=depth.depth_to,
        box_code=parse_box_code(text),
    )


def validate_fields(fields: ExtractedFields) -> List[str]:
    """
    Advisory check of extracted fields.

    Returns:
        Human-readable problems in field order, empty when complete
    """
    problems: List[str] = []

    if not fields.well:
        problems.append("Well name is missing")
    if not fields.company:
        problems.append("Company name is missing")
    if fields.depth_from is None:
        problems.append("Depth From is missing")
    if fields.depth_to is None:
        problems.append("Depth To is missing")
    if (
        fields.depth_from is not None
        and fields.depth_to is not None
        and fields.depth_from > fields.depth_to
    ):
        problems.append("Depth From should be less than Depth To")
    if not fields.box_code:
        problems.append("Box Code is missing")

    return problems

"""
Barcode identity transforms.

Stored barcodes carry a family prefix and a two-digit year suffix, e.g.
CR_08001-25 (cut roll), SET_00002-25 (118" set), JR_00001-25 (jumbo).
Printed documents and lineage views show the bare core instead. All prefix
and suffix rules live in the tables below so every call site strips codes
the same way.
"""
import re
import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Prefix rules per display kind. "reel" strips any UPPERCASE_ prefix.
PREFIX_RULES: Dict[str, re.Pattern] = {
    "set": re.compile(r"^SET_"),
    "jumbo": re.compile(r"^(?:JR|JMB)_"),
    "reel": re.compile(r"^[A-Z]+_"),
}

YEAR_SUFFIX = re.compile(r"^(?P<core>.+)-(?P<year>\d{2})$")

# Barcode families issued by the production system: (pattern, description)
BARCODE_FORMATS: Dict[str, Tuple[re.Pattern, str]] = {
    "cut_roll": (re.compile(r"^CR_(\d{5})-(\d{2})$"), "CR_00001-25"),
    "inventory": (re.compile(r"^INV_(\d{5})-(\d{2})$"), "INV_00001-25"),
    "jumbo": (re.compile(r"^JR_(\d{5})-(\d{2})$"), "JR_00001-25"),
    "set": (re.compile(r"^SET_(\d{5})-(\d{2})$"), "SET_00001-25"),
    "wastage": (re.compile(r"^WSB-(\d{5})-(\d{2})$"), "WSB-00001-25"),
    "scrap_cut_roll": (re.compile(r"^SCR-(\d{5})-(\d{2})$"), "SCR-00001-25"),
}

# Manual cut roll reel numbers reserved per year
MANUAL_CUT_ROLL_RANGES: Dict[str, Tuple[int, int]] = {
    "25": (8000, 9000),
}
DEFAULT_MANUAL_RANGE = (0, 1000)


def transform_barcode(kind: str, raw: Optional[str]) -> str:
    """
    Map a stored barcode to its display form for the given kind.

    Args:
        kind: "set", "jumbo" or "reel"
        raw: Stored barcode, possibly None

    Returns:
        str: The barcode without its family prefix, year suffix preserved.
             Unrecognised formats come back unchanged; None/empty gives "".
    """
    if kind not in PREFIX_RULES:
        raise ValueError(f"Unknown barcode kind '{kind}', expected one of {sorted(PREFIX_RULES)}")
    if not raw:
        return ""
    value = str(raw).strip()
    return PREFIX_RULES[kind].sub("", value, count=1)


def transform_set_barcode(raw: Optional[str]) -> str:
    """Display id of a parent 118" set, e.g. SET_00002-25 -> 00002-25"""
    return transform_barcode("set", raw)


def transform_jumbo_barcode(raw: Optional[str]) -> str:
    """Display id of a parent jumbo, e.g. JR_00001-25 -> 00001-25"""
    return transform_barcode("jumbo", raw)


def extract_reel_number(raw: Optional[str]) -> str:
    """
    Bare reel number printed on labels and packing slips.

    "CR_08001-25" -> "08001-25", "CR_08001" -> "08001", "3387" -> "3387"
    """
    return transform_barcode("reel", raw)


def split_year_suffix(raw: Optional[str]) -> Tuple[str, Optional[str]]:
    """Split "CR_08001-25" into ("CR_08001", "25"); no suffix gives (raw, None)."""
    if not raw:
        return "", None
    match = YEAR_SUFFIX.match(raw.strip())
    if not match:
        return raw.strip(), None
    return match.group("core"), match.group("year")


def validate_barcode_format(barcode_id: Optional[str], barcode_type: str = "cut_roll") -> bool:
    """
    Validate barcode format with year suffix.

    Args:
        barcode_id: Barcode to validate (e.g., "CR_00001-25")
        barcode_type: "cut_roll", "manual_cut_roll", "inventory", "jumbo",
                      "set", "wastage" or "scrap_cut_roll"

    Returns:
        bool: True if valid format
    """
    if not barcode_id:
        return False

    if barcode_type == "manual_cut_roll":
        match = BARCODE_FORMATS["cut_roll"][0].match(barcode_id)
        if not match:
            return False
        reel_no, year = int(match.group(1)), match.group(2)
        low, high = MANUAL_CUT_ROLL_RANGES.get(year, DEFAULT_MANUAL_RANGE)
        return low <= reel_no <= high

    rule = BARCODE_FORMATS.get(barcode_type)
    if rule is None:
        return False
    return rule[0].match(barcode_id) is not None


def classify_barcode(barcode_id: Optional[str]) -> Optional[str]:
    """Return the barcode family name, or None for legacy / unknown codes."""
    if not barcode_id:
        return None
    value = barcode_id.strip()
    for name, (pattern, _example) in BARCODE_FORMATS.items():
        if pattern.match(value):
            return name
    return None


def lineage_display(parent_set_barcode: Optional[str], parent_jumbo_barcode: Optional[str]) -> Dict[str, str]:
    """Display ids for the set and jumbo a cut roll was produced from."""
    return {
        "set_display": transform_set_barcode(parent_set_barcode),
        "jumbo_display": transform_jumbo_barcode(parent_jumbo_barcode),
    }

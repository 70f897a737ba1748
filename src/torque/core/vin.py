"""
VIN helpers (ISO 3779): normalization, check-digit validation, auto-fix and the
decode request/response shape sent to the language model.

Everything here is pure; the single upstream call lives in the API service layer.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Optional

from torque.core.errors import InvalidVinError
from torque.core.messages import Message, system_message, user_message

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
CHECK_DIGIT_INDEX = 8
VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

VIN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)
VIN_VALUES: dict[str, int] = {
    **{str(d): d for d in range(10)},
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "P": 7, "R": 9,
    "S": 2, "T": 3, "U": 4, "V": 5, "W": 6, "X": 7, "Y": 8, "Z": 9,
}

# Characters commonly misread for one another on plates and stickers.
AMBIGUOUS_CHARS: dict[str, tuple[str, ...]] = {
    "0": ("O", "Q"), "O": ("0",), "Q": ("0",),
    "1": ("I", "L"), "I": ("1",), "L": ("1",),
    "5": ("S",), "S": ("5",),
    "8": ("B",), "B": ("8",),
    "6": ("G",), "G": ("6",),
    "2": ("Z",), "Z": ("2", "7"),
    "7": ("Z",),
}

DECODE_TEMPERATURE = 0.0
DECODE_MAX_TOKENS = 600
DECODE_FIELDS = (
    "vin", "year", "make", "model", "trim", "engine", "transmission", "drive_type",
    "body_style", "fuel_type", "horsepower_hp", "gvw_lbs", "mpg_city", "mpg_highway",
    "mpg_combined",
)

DECODER_PROMPT = dedent(
    """
    You are a meticulous VIN decoder.
    Return ONLY a single JSON object (no markdown).
    If uncertain about any spec, use null; do not guess.
    Use these exact keys:
    {fields}.
    """
).strip()


@dataclass(frozen=True)
class VinFix:
    vin: str
    fixed: bool
    reason: Optional[str] = None


def normalize_vin(value: Any) -> str:
    """Upper-case, drop separators, and map I -> 1 and O/Q -> 0 (never legal in a VIN)."""
    text = re.sub(r"[^A-Z0-9]", "", str(value or "").upper())
    return text.replace("I", "1").replace("O", "0").replace("Q", "0")


def is_well_formed_vin(vin: str) -> bool:
    return bool(VIN_RE.match(vin or ""))


def compute_check_digit(vin: str) -> Optional[str]:
    """Weighted sum mod 11 ("X" for 10). None if the VIN has the wrong length or an illegal character."""
    if len(vin) != VIN_LENGTH:
        return None
    total = 0
    for ch, weight in zip(vin, VIN_WEIGHTS):
        value = VIN_VALUES.get(ch)
        if value is None:
            return None
        total += value * weight
    rem = total % 11
    return "X" if rem == 10 else str(rem)


def is_valid_vin(vin: str) -> bool:
    return is_well_formed_vin(vin) and compute_check_digit(vin) == vin[CHECK_DIGIT_INDEX]


def try_auto_fix_vin(vin: str) -> VinFix:
    """
    Repair a 17-character VIN that fails validation.

    First the check digit itself is replaced with the computed one. If that is not
    possible, each position is tried with its look-alike characters and the first
    candidate that validates wins. Returns the input unchanged when nothing works.
    """
    if len(vin) != VIN_LENGTH:
        return VinFix(vin=vin, fixed=False)

    expected = compute_check_digit(vin)
    if expected and expected != vin[CHECK_DIGIT_INDEX]:
        candidate = vin[:CHECK_DIGIT_INDEX] + expected + vin[CHECK_DIGIT_INDEX + 1:]
        if is_valid_vin(candidate):
            return VinFix(vin=candidate, fixed=True, reason="check-digit corrected")

    for i, ch in enumerate(vin):
        for alt in AMBIGUOUS_CHARS.get(ch, ()):
            candidate = vin[:i] + alt + vin[i + 1:]
            if is_valid_vin(candidate):
                return VinFix(vin=candidate, fixed=True, reason=f"ambiguous swap @{i + 1}: {ch}->{alt}")
    return VinFix(vin=vin, fixed=False)


def resolve_vin(value: Any) -> VinFix:
    """
    Normalize, validate and, if needed, auto-fix a user-typed VIN.
    Raises InvalidVinError when the result still is not a valid VIN.
    """
    vin = normalize_vin(value)
    fix = VinFix(vin=vin, fixed=False)
    if not is_well_formed_vin(vin):
        fix = try_auto_fix_vin(vin)
        if not is_well_formed_vin(fix.vin):
            raise InvalidVinError("Invalid VIN. Must be 17 chars (no I/O/Q).")
    if not is_valid_vin(fix.vin):
        fix = try_auto_fix_vin(fix.vin)
        if not is_valid_vin(fix.vin):
            raise InvalidVinError("Invalid VIN check digit.")
    if fix.fixed:
        logger.info("VIN auto-fixed (%s): %s", fix.reason, fix.vin)
    return fix


def build_decode_messages(vin: str) -> list[Message]:
    return [
        system_message(DECODER_PROMPT.format(fields=", ".join(DECODE_FIELDS))),
        user_message(f"VIN: {vin}\nDecode fully and include the fields above."),
    ]


def parse_decoded_vehicle(text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a decoder reply. An empty reply or one with no
    object in it yields {}; a reply whose object is not valid JSON raises ValueError.
    """
    raw = (text or "").strip() or "{}"
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}$", raw)
        parsed = json.loads(match.group(0)) if match else {}
    return parsed if isinstance(parsed, dict) else {}


def _number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    digits = re.sub(r"[^\d.]", "", str(value))
    try:
        n = float(digits)
    except ValueError:
        return None
    return int(n) if n.is_integer() else n


def fold_vehicle_specs(raw: dict[str, Any]) -> dict[str, Any]:
    """Fold the decoder's loosely named fields into the app's vehicle shape (hp, gvw, mpg text, transmission)."""
    v = dict(raw)

    hp = _number(next((v[k] for k in ("horsepower_hp", "horsepower", "hp") if v.get(k) not in (None, "")), None))
    if hp is not None:
        v["hp"] = hp
    gvw = _number(next(
        (v[k] for k in ("gvw_lbs", "gvw", "gross_vehicle_weight_rating", "gvwr") if v.get(k) not in (None, "")),
        None,
    ))
    if gvw is not None:
        v["gvw"] = gvw

    mpg = v.get("mpg") if isinstance(v.get("mpg"), dict) else {}
    city = _number(v.get("mpg_city") or v.get("city_mpg") or mpg.get("city"))
    highway = _number(v.get("mpg_highway") or v.get("hwy_mpg") or mpg.get("highway"))
    combined = _number(v.get("mpg_combined") or v.get("combined_mpg"))
    if city and highway:
        v["mpg"] = f"{city} city / {highway} highway"
    elif not v.get("mpg") and combined:
        v["mpg"] = f"{combined} combined"

    transmission = v.get("transmission")
    if isinstance(transmission, str):
        if re.search(r"auto", transmission, re.I):
            v["transmission"] = "Automatic"
        elif re.search(r"man", transmission, re.I):
            v["transmission"] = "Manual"
    return v

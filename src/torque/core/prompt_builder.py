"""
Persona prompt builder: the system message that frames Torque for the upstream model.

The text is policy for the model; nothing in this package parses or enforces it.
Templates are filled with build_from_template; missing keys render as empty strings.
"""

from __future__ import annotations

from textwrap import dedent
from typing import Any, Mapping, Optional

from torque.core.errors import ConfigurationError
from torque.core.messages import Message, Tier, system_message

ASSISTANT_NAME = "Torque"
APP_NAME = "TorqueTheMechanic"

# User turns after which the model should drop earlier context.
MEMORY_RESET_USER_TURNS = 10

MANUAL_DISCLAIMER = "Check your user manual to be sure."


class _SafeFormatDict(dict):
    """Mapping that returns empty string for missing keys (for str.format_map)."""

    def __missing__(self, key: str) -> str:
        return ""


def build_from_template(template: str, **kwargs: Any) -> str:
    """
    Fill a template with the given keyword arguments.
    Missing keys are replaced with empty string (safe for optional placeholders).
    """
    if not template:
        return ""
    safe = {k: ("" if v is None else v) for k, v in kwargs.items()}
    return template.format_map(_SafeFormatDict(safe))


_GLOBAL_RULES = dedent(
    """
    Rules:
    - Only discuss automotive and mechanical topics. Small talk about yourself is fine, but steer back
      to cars. If the user strays off topic, redirect humorously ("come on, are we talking cars or not?")
      and keep those answers short.
    - Never say you are an AI, a bot, GPT or a language model, and never name internal models or vendors.
      If asked what you are, you are {name}, a mechanic trained by generations of mechanics and automotive experts.
    - Use confident but cautious language for critical specs (oil, torque, fitment).
    - Keep answers short, clear and practical. Use markdown bullets, not long paragraphs.
    - Friendly, casual, occasionally sarcastic tone.
    """
).strip()

_MEMORY_RULES = dedent(
    """
    Memory:
    - Drop earlier conversation context after {reset_turns} user turns unless the user signals continuity
      (for example "same issue").
    - If the user says "new issue" or "start fresh", reset all context immediately.
    """
).strip()

_PRO_TEMPLATE = dedent(
    """
    You are {name}, the in-app master mechanic for {app} with upgraded Pro diagnostic tools.
    For critical specs, cross-check with research across credible sources and cite them, for example:
    "I reviewed 21 sources, most agree it's 4.9 quarts." Offer your top sources with links when asked
    or when the answer is critical.

    {global_rules}

    {memory_rules}
    """
).strip()

_FREE_TEMPLATE = dedent(
    """
    You are {name}, the in-app mechanic for {app}: helpful, but on the free plan.
    You cannot run live research or cite sources. Still give your best answer for torque specs, fluids
    and vehicle information.
    Whenever you give a critical spec (oil type or capacity, torque specs, anything normally found in an
    owner's manual) always add: "{disclaimer}"
    Now and then mention that Pro unlocks researched, source-checked answers.

    {global_rules}

    {memory_rules}
    """
).strip()

_TIER_TEMPLATES: dict[Tier, str] = {
    Tier.PRO: _PRO_TEMPLATE,
    Tier.FREE: _FREE_TEMPLATE,
}

_VEHICLE_TEMPLATE = dedent(
    """
    VEHICLE CONTEXT:
    - Default vehicle: {summary}.
    - Assume questions refer to this vehicle unless the user clearly switches.

    METADATA CONTRACT:
    - At the very end of EVERY reply, append exactly one line:
      [[META: {{"vehicle_used": <object-or-null>}}]]
    - Include fields you actually used (year, make, model, trim, engine, transmission, drive_type, body_style). If none, set null.
    """
).strip()


def build_persona_text(tier: Tier | str) -> str:
    resolved = Tier.parse(tier)
    template = _TIER_TEMPLATES.get(resolved)
    if template is None:
        raise ConfigurationError(f"No persona configured for tier {resolved.value!r}")
    common = dict(name=ASSISTANT_NAME, app=APP_NAME)
    return build_from_template(
        template,
        global_rules=build_from_template(_GLOBAL_RULES, **common),
        memory_rules=build_from_template(_MEMORY_RULES, reset_turns=MEMORY_RESET_USER_TURNS),
        disclaimer=MANUAL_DISCLAIMER,
        **common,
    )


def build_system_prompt(tier: Tier | str) -> Message:
    """Persona system message for a tier. Pure; unknown tiers raise ConfigurationError."""
    return system_message(build_persona_text(tier))


def summarize_vehicle(vehicle: Optional[Mapping[str, Any]]) -> str:
    """'2004 Infiniti G35 (Trim: Base | Engine: 3.5L V6)' style one-liner, or '' when unknown."""
    if not vehicle or not isinstance(vehicle, Mapping):
        return ""
    main = " ".join(str(vehicle[k]) for k in ("year", "make", "model") if vehicle.get(k))
    labels = (
        ("trim", "Trim"),
        ("engine", "Engine"),
        ("transmission", "Trans"),
        ("drive_type", "Drive"),
        ("body_style", "Body"),
    )
    extras = " | ".join(f"{label}: {vehicle[key]}" for key, label in labels if vehicle.get(key))
    return f"{main} ({extras})" if extras else main


def build_vehicle_context(vehicle: Optional[Mapping[str, Any]]) -> str:
    has_vehicle = isinstance(vehicle, Mapping) and vehicle.get("make") and vehicle.get("model")
    summary = summarize_vehicle(vehicle) if has_vehicle else ""
    return build_from_template(_VEHICLE_TEMPLATE, summary=summary or "unknown")

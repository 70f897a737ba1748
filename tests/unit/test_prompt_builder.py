"""Unit tests for the persona prompt builder (pure; no LLM)."""
import pytest

from torque.core.errors import ConfigurationError
from torque.core.messages import Role, Tier
from torque.core.prompt_builder import (
    ASSISTANT_NAME,
    MANUAL_DISCLAIMER,
    MEMORY_RESET_USER_TURNS,
    build_from_template,
    build_system_prompt,
    build_vehicle_context,
    summarize_vehicle,
)


@pytest.mark.unit
class TestBuildFromTemplate:
    def test_fills_placeholders(self):
        assert build_from_template("Hi {name}", name="Torque") == "Hi Torque"

    def test_missing_and_none_render_empty(self):
        assert build_from_template("[{a}][{b}]", a=None) == "[][]"

    def test_empty_template(self):
        assert build_from_template("", x=1) == ""


@pytest.mark.unit
class TestBuildSystemPrompt:
    def test_returns_system_message(self):
        msg = build_system_prompt("free")
        assert msg.role is Role.SYSTEM
        assert ASSISTANT_NAME in msg.content

    def test_tiers_differ(self):
        assert build_system_prompt(Tier.FREE).content != build_system_prompt(Tier.PRO).content

    def test_pro_mentions_sourced_research(self):
        content = build_system_prompt("pro").content.lower()
        assert "sources" in content
        assert "research" in content
        assert MANUAL_DISCLAIMER not in build_system_prompt("pro").content

    def test_free_has_manual_disclaimer(self):
        content = build_system_prompt("free").content
        assert MANUAL_DISCLAIMER in content
        assert "cannot run live research" in content

    @pytest.mark.parametrize("tier", ["free", "pro"])
    def test_shared_policy_blocks(self, tier):
        content = build_system_prompt(tier).content
        assert "automotive" in content
        assert "Never say you are an AI" in content
        assert f"after {MEMORY_RESET_USER_TURNS} user turns" in content
        assert "same issue" in content
        assert "{" not in content

    def test_pure(self):
        assert build_system_prompt("pro") == build_system_prompt("pro")

    def test_unknown_tier_raises(self):
        with pytest.raises(ConfigurationError):
            build_system_prompt("enterprise")


@pytest.mark.unit
class TestVehicleContext:
    def test_summary_with_extras(self):
        v = {"year": 2004, "make": "Infiniti", "model": "G35", "engine": "3.5L V6", "trim": "Base"}
        assert summarize_vehicle(v) == "2004 Infiniti G35 (Trim: Base | Engine: 3.5L V6)"

    def test_summary_empty(self):
        assert summarize_vehicle(None) == ""
        assert summarize_vehicle({}) == ""

    def test_context_contains_meta_contract(self):
        text = build_vehicle_context({"year": 2004, "make": "Infiniti", "model": "G35"})
        assert "Default vehicle: 2004 Infiniti G35." in text
        assert '[[META: {"vehicle_used": <object-or-null>}]]' in text

    def test_context_unknown_without_make_and_model(self):
        assert "Default vehicle: unknown." in build_vehicle_context({"year": 2004})

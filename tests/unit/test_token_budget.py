"""Unit tests for token estimation and the budget gate."""
import pytest

from torque.core.budget import DEFAULT_CEILINGS, ceiling_for, check_budget
from torque.core.errors import BudgetExceededError, ConfigurationError, InvalidMessageError
from torque.core.messages import Tier, assistant_message, system_message, user_message
from torque.core.token_utils import (
    ATTACHMENT_PLACEHOLDER,
    MAX_CONTENT_CHARS,
    TRUNCATION_SUFFIX,
    estimate_tokens,
    flatten_content,
    render_messages,
)


def message_with_estimate(tokens: int):
    """A single user message whose estimate is exactly `tokens` ("user:" + body, 4 chars per token)."""
    return [user_message("x" * (tokens * 4 - len("user:")))]


@pytest.mark.unit
class TestEstimateTokens:
    def test_empty(self):
        assert estimate_tokens([]) == 0

    def test_role_content_rendering(self):
        msgs = [system_message("abc"), user_message("de")]
        assert render_messages(msgs) == "system:abc\nuser:de"
        assert estimate_tokens(msgs) == round(len("system:abc\nuser:de") / 4)

    def test_g35_question(self, g35_question):
        text = "user:What oil does a 2004 G35 take?"
        assert estimate_tokens(g35_question) == round(len(text) / 4)

    def test_deterministic(self, twenty_messages):
        assert estimate_tokens(twenty_messages) == estimate_tokens(list(twenty_messages))

    @pytest.mark.parametrize("content", ["a", "tire", "x" * 37, "brake fluid"])
    def test_appending_never_decreases(self, twenty_messages, content):
        before = estimate_tokens(twenty_messages)
        assert estimate_tokens([*twenty_messages, assistant_message(content)]) >= before

    def test_monotonic_over_growing_content(self):
        estimates = [estimate_tokens([user_message("y" * n)]) for n in range(0, 200)]
        assert estimates == sorted(estimates)

    def test_scenario_6100_chars_is_about_1525(self):
        body = "z" * (6100 - len("user:"))
        assert estimate_tokens([user_message(body)]) == 1525

    def test_malformed_raises(self):
        with pytest.raises(InvalidMessageError):
            estimate_tokens([{"role": "narrator", "content": "x"}])


@pytest.mark.unit
class TestFlattenContent:
    def test_plain_text_unchanged(self):
        assert flatten_content("hello") == "hello"

    def test_structured_parts_become_placeholder(self):
        parts = [{"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,..."}}]
        assert flatten_content(parts) == ATTACHMENT_PLACEHOLDER
        assert flatten_content({"type": "text"}) == ATTACHMENT_PLACEHOLDER

    def test_long_text_truncated(self):
        result = flatten_content("a" * (MAX_CONTENT_CHARS + 10))
        assert result.endswith(TRUNCATION_SUFFIX)
        assert len(result) == MAX_CONTENT_CHARS + len(TRUNCATION_SUFFIX)

    def test_exact_limit_kept(self):
        assert flatten_content("a" * MAX_CONTENT_CHARS) == "a" * MAX_CONTENT_CHARS

    def test_none_and_numbers(self):
        assert flatten_content(None) == ""
        assert flatten_content(42) == "42"


@pytest.mark.unit
class TestCheckBudget:
    def test_default_ceilings(self):
        assert DEFAULT_CEILINGS == {Tier.FREE: 1500, Tier.PRO: 6000}

    def test_exactly_at_ceiling_passes(self):
        msgs = message_with_estimate(100)
        assert estimate_tokens(msgs) == 100
        assert check_budget(msgs, "free", {Tier.FREE: 100}) == 100

    def test_one_over_ceiling_fails(self):
        msgs = message_with_estimate(101)
        with pytest.raises(BudgetExceededError) as exc_info:
            check_budget(msgs, Tier.FREE, {Tier.FREE: 100})
        err = exc_info.value
        assert err.estimated == 101
        assert err.ceiling == 100
        assert err.tier == "free"
        assert "upgrade" in str(err).lower()

    def test_scenario_free_6100_chars_rejected(self):
        msgs = [user_message("z" * (6100 - len("user:")))]
        with pytest.raises(BudgetExceededError) as exc_info:
            check_budget(msgs, "free", DEFAULT_CEILINGS)
        assert exc_info.value.estimated == 1525

    def test_same_conversation_passes_for_pro(self):
        msgs = [user_message("z" * (6100 - len("user:")))]
        assert check_budget(msgs, "pro", DEFAULT_CEILINGS) == 1525

    def test_string_keyed_ceilings(self):
        assert ceiling_for("pro", {"pro": 42}) == 42

    def test_missing_ceiling_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            check_budget([], "pro", {Tier.FREE: 1500})

    def test_unknown_tier(self):
        with pytest.raises(ConfigurationError):
            check_budget([], "platinum", DEFAULT_CEILINGS)

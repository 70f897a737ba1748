"""Unit tests for the conversation window (trim_history)."""
import pytest

from torque.core.errors import InvalidMessageError
from torque.core.history import count_turns, split_system, trim_history
from torque.core.messages import Role, assistant_message, system_message, user_message


@pytest.mark.unit
class TestTrimHistory:
    def test_twenty_messages_six_turns_keeps_last_twelve(self, twenty_messages):
        prompt = system_message("persona")
        result = trim_history([prompt, *twenty_messages], 6)
        assert len(result) == 13
        assert result[0] == prompt
        assert result[1:] == twenty_messages[8:]
        assert sum(1 for m in result if m.role is Role.USER) == 6
        assert sum(1 for m in result if m.role is Role.ASSISTANT) == 6

    def test_without_system_message(self, twenty_messages):
        result = trim_history(twenty_messages, 6)
        assert result == twenty_messages[8:]

    @pytest.mark.parametrize("n", [0, 1, 2, 5, 10, 11, 30])
    @pytest.mark.parametrize("size", [0, 1, 7, 20])
    def test_length_bound_and_order(self, make_alternating, n, size):
        conversation = [system_message("p"), *make_alternating(size)]
        result = trim_history(conversation, n)
        assert len(result) <= 2 * n + 1
        # relative order preserved: result is a subsequence of the input
        positions = [conversation.index(m) for m in result]
        assert positions == sorted(positions)

    def test_only_first_system_message_kept(self):
        first = system_message("first")
        conversation = [user_message("a"), first, system_message("second"), assistant_message("b")]
        result = trim_history(conversation, 3)
        assert result == [first, conversation[0], conversation[3]]
        assert sum(1 for m in result if m.role is Role.SYSTEM) == 1

    def test_no_non_system_messages(self):
        prompt = system_message("p")
        assert trim_history([prompt], 4) == [prompt]
        assert trim_history([], 4) == []

    def test_zero_turns_keeps_only_prompt(self, twenty_messages):
        prompt = system_message("p")
        assert trim_history([prompt, *twenty_messages], 0) == [prompt]

    def test_not_alternation_aware(self):
        conversation = [user_message("u1"), user_message("u2"), user_message("u3"), assistant_message("a")]
        assert trim_history(conversation, 1) == conversation[-2:]

    def test_accepts_dicts(self):
        result = trim_history([{"role": "user", "content": "hi"}], 1)
        assert result == [user_message("hi")]

    def test_negative_turns_rejected(self):
        with pytest.raises(ValueError):
            trim_history([], -1)

    def test_malformed_message_raises(self):
        with pytest.raises(InvalidMessageError):
            trim_history([{"content": "no role"}], 2)

    def test_input_not_mutated(self, twenty_messages):
        snapshot = list(twenty_messages)
        trim_history(twenty_messages, 2)
        assert twenty_messages == snapshot


@pytest.mark.unit
class TestHelpers:
    def test_split_system(self):
        prompt = system_message("p")
        first, rest = split_system([user_message("a"), prompt])
        assert first == prompt
        assert rest == [user_message("a")]

    def test_count_turns(self, twenty_messages):
        assert count_turns(twenty_messages) == 10
        assert count_turns([system_message("p")]) == 0

"""Unit tests for core message and tier types."""
import pytest

from torque.core.errors import ConfigurationError, InvalidMessageError
from torque.core.messages import Message, Role, Tier, ensure_message


@pytest.mark.unit
class TestTierParse:
    def test_known_names(self):
        assert Tier.parse("free") is Tier.FREE
        assert Tier.parse("pro") is Tier.PRO

    def test_case_and_whitespace_insensitive(self):
        assert Tier.parse(" PRO ") is Tier.PRO

    def test_tier_passthrough(self):
        assert Tier.parse(Tier.FREE) is Tier.FREE

    @pytest.mark.parametrize("value", ["gold", "", None, 3])
    def test_unknown_raises_configuration_error(self, value):
        with pytest.raises(ConfigurationError):
            Tier.parse(value)


@pytest.mark.unit
class TestMessage:
    def test_from_dict(self):
        msg = Message.from_dict({"role": "user", "content": "hi"})
        assert msg.role is Role.USER
        assert msg.content == "hi"

    def test_role_string_is_normalized(self):
        assert Message(role="assistant", content="ok").role is Role.ASSISTANT

    def test_missing_role(self):
        with pytest.raises(InvalidMessageError):
            Message.from_dict({"content": "hi"})

    def test_unknown_role(self):
        with pytest.raises(InvalidMessageError):
            Message.from_dict({"role": "tool", "content": "hi"})

    def test_missing_content(self):
        with pytest.raises(InvalidMessageError):
            Message.from_dict({"role": "user"})

    def test_non_mapping(self):
        with pytest.raises(InvalidMessageError):
            ensure_message("user: hi")

    def test_to_dict_round_trip_shape(self):
        assert Message(role=Role.SYSTEM, content="x").to_dict() == {"role": "system", "content": "x"}

    def test_frozen(self):
        msg = Message(role=Role.USER, content="x")
        with pytest.raises(AttributeError):
            msg.content = "y"

    def test_structured_content_serialized_as_json(self):
        msg = Message.from_dict({"role": "user", "content": [{"type": "image_url"}]})
        assert msg.content == '[{"type":"image_url"}]'

    def test_numeric_content_serialized(self):
        assert Message.from_dict({"role": "user", "content": 42}).content == "42"

    def test_unserializable_content(self):
        with pytest.raises(InvalidMessageError):
            Message.from_dict({"role": "user", "content": object()})

"""Tests for resub types and errors."""

import pytest

from resub.errors import ProtocolError, ResubError, SubscriptionError
from resub.types import (
    ManagerConfig,
    NosubMessage,
    ReadyMessage,
    SubscriptionState,
    UnknownIdPolicy,
)


class TestMessages:
    def test_ready_from_payload(self):
        msg = ReadyMessage.from_payload({"msg": "ready", "subs": ["a", "b"]})
        assert msg.subs == ("a", "b")

    @pytest.mark.parametrize("payload", [None, {}, {"subs": "a"}, ["a"]])
    def test_ready_malformed(self, payload):
        with pytest.raises(ProtocolError):
            ReadyMessage.from_payload(payload)

    def test_nosub_from_payload(self):
        msg = NosubMessage.from_payload({"msg": "nosub", "id": "a"})
        assert msg.id == "a"
        assert msg.error is None

    def test_nosub_with_error(self):
        err = {"error": 404, "reason": "not found"}
        msg = NosubMessage.from_payload({"id": "a", "error": err})
        assert msg.error == err

    @pytest.mark.parametrize("error", [{}, 0, "", False])
    def test_nosub_falsy_error_kept(self, error):
        msg = NosubMessage.from_payload({"id": "a", "error": error})
        assert msg.error is not None

    @pytest.mark.parametrize("payload", [None, {}, {"error": {}}])
    def test_nosub_malformed(self, payload):
        with pytest.raises(ProtocolError):
            NosubMessage.from_payload(payload)

    def test_messages_frozen(self):
        msg = NosubMessage(id="a")
        with pytest.raises(AttributeError):
            msg.id = "b"


class TestConfig:
    def test_defaults(self):
        cfg = ManagerConfig()
        assert cfg.unknown_id_policy == UnknownIdPolicy.LOG
        assert cfg.replay_on_connect is True

    def test_enums_are_strings(self):
        assert SubscriptionState.READY == "ready"
        assert UnknownIdPolicy("raise") is UnknownIdPolicy.RAISE


class TestSubscriptionError:
    def test_fields_from_ddp_error(self):
        err = SubscriptionError(
            "sub-1",
            {"error": 403, "reason": "Access denied", "errorType": "Meteor.Error"},
            name="feed",
            params=(1,),
        )
        assert isinstance(err, ResubError)
        assert err.code == 403
        assert err.reason == "Access denied"
        assert err.params == (1,)
        assert "feed" in str(err)
        assert "Access denied" in str(err)

    def test_message_fallback(self):
        err = SubscriptionError("sub-1", {"message": "boom"})
        assert err.reason == "boom"
        assert err.code is None

    def test_non_dict_payload(self):
        err = SubscriptionError("sub-1", "plain failure")
        assert err.reason == "plain failure"
        assert err.payload == "plain failure"

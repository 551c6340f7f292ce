"""
Tests for Subscription value type
"""
import dataclasses

import pytest

from pushstore.domain.subscription import Subscription


def test_subscription_info_shape():
    sub = Subscription(endpoint="https://push.example.com/abc", auth="auth-1", p256dh="p256-1", user_id="u1")

    assert sub.to_subscription_info() == {
        "endpoint": "https://push.example.com/abc",
        "keys": {"p256dh": "p256-1", "auth": "auth-1"},
    }


def test_user_id_optional():
    sub = Subscription(endpoint="e", auth="a", p256dh="p")
    assert sub.user_id is None


def test_subscription_is_immutable():
    sub = Subscription(endpoint="e", auth="a", p256dh="p")
    with pytest.raises(dataclasses.FrozenInstanceError):
        sub.endpoint = "other"


def test_equal_values_compare_equal():
    assert Subscription("e", "a", "p", "u") == Subscription("e", "a", "p", "u")

"""
pushstore - persistence and expiry lifecycle for Web Push subscriptions
"""
from pushstore.domain.subscription import Subscription
from pushstore.store import WebPushStore

__all__ = ["Subscription", "WebPushStore"]

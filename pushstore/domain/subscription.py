"""
Subscription value returned to callers of the store.
"""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Subscription:
    """
    Push registration of a client endpoint.

    Detached copy of stored key material: holds no reference to the
    session or ORM row it was read from.
    """
    endpoint: str
    auth: str  # key_auth
    p256dh: str  # key_p256dh
    user_id: str | None = None

    def to_subscription_info(self) -> Dict[str, Any]:
        """
        subscription_info mapping in the shape Web Push senders expect

        Example:
            >>> Subscription("https://push.example/abc", "a", "p").to_subscription_info()
            {'endpoint': 'https://push.example/abc', 'keys': {'p256dh': 'p', 'auth': 'a'}}
        """
        return {
            "endpoint": self.endpoint,
            "keys": {
                "p256dh": self.p256dh,
                "auth": self.auth,
            },
        }

from typing import Any

from flask import session

from src.models import User


def get_current_user() -> User | None:
    """Get the currently logged-in user from session."""
    user_id = session.get("user_id")
    if user_id:
        try:
            return User.get_by_id(user_id)
        except User.DoesNotExist:
            session.pop("user_id", None)
    return None


class AdminAuthorizationChecker:
    """Grants the administer capability to logged-in admin users."""

    def has_administer_capability(self, caller: Any) -> bool:
        return isinstance(caller, User) and bool(caller.is_admin)

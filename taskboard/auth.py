"""
Admin vs viewer session.

- Viewer: read-only, the default
- Admin: may mutate boards, columns and tasks

A single credential pair is checked against storage. The first login with
the unchanged default password does not open a session; the password must
be changed first.

The flag lives in local storage and is a convenience switch, not a
security boundary.
"""
import logging
from enum import Enum
from typing import Optional

from .config import Config
from .storage import (
    KeyValueStorage,
    ADMIN_SESSION_KEY,
    ADMIN_PASSWORD_KEY,
    PASSWORD_CHANGED_KEY,
)

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when user input fails validation."""
    pass


class PasswordChangeError(ValidationError):
    """Raised when a password change is rejected. The message is user-facing."""
    pass


class LoginResult(Enum):
    GRANTED = "granted"
    PASSWORD_CHANGE_REQUIRED = "password_change_required"
    REJECTED = "rejected"


class AdminSession:
    """Holds the edit-rights flag and runs the login / password-change flow."""

    def __init__(self, storage: KeyValueStorage, config: Optional[Config] = None):
        self.storage = storage
        self.config = config or Config()
        self._is_admin = bool(self.storage.get_item(ADMIN_SESSION_KEY, False))

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def admin_password(self) -> str:
        stored = self.storage.get_item(ADMIN_PASSWORD_KEY, None)
        return stored if isinstance(stored, str) else self.config.default_admin_password

    @property
    def password_changed(self) -> bool:
        return bool(self.storage.get_item(PASSWORD_CHANGED_KEY, False))

    @property
    def requires_password_change(self) -> bool:
        """True while the default password is still in use."""
        return (
            not self.password_changed
            and self.admin_password == self.config.default_admin_password
        )

    def _set_admin(self, value: bool) -> None:
        self._is_admin = value
        self.storage.set_item(ADMIN_SESSION_KEY, value)

    def login(self, username: str, password: str) -> LoginResult:
        if username != self.config.admin_username or password != self.admin_password:
            logger.warning(f"Rejected login for user '{username}'")
            return LoginResult.REJECTED
        if self.requires_password_change:
            logger.info("Default password in use, password change required")
            return LoginResult.PASSWORD_CHANGE_REQUIRED
        self._set_admin(True)
        logger.info("Admin session started")
        return LoginResult.GRANTED

    def change_password(self, current: str, new: str, confirm: str) -> None:
        """
        Replace the admin password and open an admin session.

        Raises:
            PasswordChangeError if the current password is wrong, the new
            one is too short, or the confirmation differs.
        """
        if current != self.admin_password:
            raise PasswordChangeError("Current password is incorrect.")
        min_len = self.config.min_password_length
        if len(new) < min_len:
            raise PasswordChangeError(
                f"New password must be at least {min_len} characters long."
            )
        if new != confirm:
            raise PasswordChangeError("New passwords do not match.")

        self.storage.set_items({
            ADMIN_PASSWORD_KEY: new,
            PASSWORD_CHANGED_KEY: True,
        })
        self._set_admin(True)
        logger.info("Admin password changed")

    def logout(self) -> None:
        self._set_admin(False)
        logger.info("Admin session ended")

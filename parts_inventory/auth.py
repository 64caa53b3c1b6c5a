"""Demo credential check against the admin pair stored in the document."""
from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .inventory import InventoryDocument

logger = logging.getLogger(__name__)

SESSION_FLAG = "logged_in"


def authenticate(document: "InventoryDocument", username: str, password: str) -> bool:
    """Return ``True`` when the pair matches ``document.admin`` exactly.

    This is not a security boundary: the password is stored in clear text
    alongside the inventory and there is no lockout.
    """

    candidate = (username or "").strip()
    expected = document.admin
    user_ok = hmac.compare_digest(candidate.encode("utf-8"), expected.username.encode("utf-8"))
    password_ok = hmac.compare_digest(
        (password or "").encode("utf-8"), expected.password.encode("utf-8")
    )
    if user_ok and password_ok:
        return True
    logger.info("Rejected login for %r", candidate)
    return False


__all__ = ["SESSION_FLAG", "authenticate"]

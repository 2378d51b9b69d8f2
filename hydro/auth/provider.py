# -*- coding: utf-8 -*-
"""Auth — sign-up / sign-in.

Every failure is an :class:`AuthError` whose message is safe to show as-is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import settings
from .errors import EMAIL_IN_USE, INVALID_CREDENTIAL, WEAK_PASSWORD, AuthError
from .security import hash_password, verify_password
from .storage import create_user, get_user_by_email

logger = logging.getLogger(__name__)


def sign_up(email: str, password: str) -> Dict[str, Any]:
    if len(password) < settings.min_password_length:
        raise AuthError(WEAK_PASSWORD)
    if get_user_by_email(email):
        raise AuthError(EMAIL_IN_USE)
    user = create_user(email=email, password_hash=hash_password(password))
    logger.info("Registered user %s", user["id"])
    return user


def sign_in(email: str, password: str) -> Dict[str, Any]:
    user = get_user_by_email(email)
    if not user or not verify_password(password, user["password_hash"]):
        logger.info("Rejected sign-in attempt")
        raise AuthError(INVALID_CREDENTIAL)
    return user

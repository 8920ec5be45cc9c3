"""
Identity Service - who is operating the kiosk
Token sign-in through Firebase Auth, falling back to an anonymous identity
"""
import logging
import uuid
from typing import Callable, Dict, Optional

from logging_config import security_logger

SESSION_USER_KEY = 'user_id'


class IdentityError(RuntimeError):
    """Raised when sign-in fails."""


class IdentityService:
    """Resolves an identity once per browser session and remembers it there."""

    def __init__(
        self,
        initial_token: Optional[str] = None,
        token_verifier: Optional[Callable[[str], Dict]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.initial_token = initial_token
        self.token_verifier = token_verifier
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, session, ip_address=None) -> str:
        """Return the session's identity, signing in on first use; raises IdentityError"""
        user_id = session.get(SESSION_USER_KEY)
        if user_id:
            return user_id

        user_id, method = self.sign_in()
        session[SESSION_USER_KEY] = user_id
        session.permanent = True
        security_logger.log_sign_in(user_id, method, ip_address)
        return user_id

    def sign_in(self):
        """Token sign-in when a token is supplied, anonymous otherwise"""
        if self.initial_token:
            if self.token_verifier is None:
                security_logger.log_sign_in_failed('token', 'Firebase is not configured')
                raise IdentityError('Token sign-in requires Firebase to be configured.')
            try:
                claims = self.token_verifier(self.initial_token)
            except Exception as exc:
                # firebase_admin raises several unrelated error types for bad tokens
                security_logger.log_sign_in_failed('token', str(exc))
                raise IdentityError(str(exc)) from exc
            user_id = (claims or {}).get('uid')
            if not user_id:
                raise IdentityError('Token did not carry a user id.')
            return user_id, 'token'

        return f"anon-{uuid.uuid4().hex}", 'anonymous'


def firebase_token_verifier(firebase_app):
    """Build a verifier bound to a firebase_admin App."""
    from firebase_admin import auth as firebase_auth

    def verify(token):
        return firebase_auth.verify_id_token(token, app=firebase_app)

    return verify

# shared/common/authentication.py
"""
JWT Authentication for tokens issued by the hosted auth provider.

The provider signs access tokens with a shared HS256 secret. The user id is
the ``sub`` claim and the application role lives in ``app_metadata.role``.
"""

import jwt
import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional, Dict, Any, Tuple
from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework.request import Request

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'admin'
DEFAULT_ROLE = 'user'


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Bearer token authentication.
    """

    keyword = 'Bearer'

    def authenticate(self, request: Request) -> Optional[Tuple[Any, Dict]]:
        auth_header = authentication.get_authorization_header(request)

        if not auth_header:
            return None

        try:
            auth_parts = auth_header.decode('utf-8').split()
        except UnicodeDecodeError:
            raise exceptions.AuthenticationFailed('Invalid token header encoding')

        if len(auth_parts) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header format')

        if auth_parts[0].lower() != self.keyword.lower():
            return None

        return self.authenticate_token(auth_parts[1])

    def authenticate_token(self, token: str) -> Tuple[Any, Dict]:
        """Validate and decode JWT token"""
        jwt_settings = settings.JWT_SETTINGS
        try:
            payload = jwt.decode(
                token,
                jwt_settings['SECRET'],
                algorithms=[jwt_settings['ALGORITHM']],
                audience=jwt_settings['AUDIENCE'],
                options={
                    'require': ['exp', 'sub'],
                    'verify_exp': True,
                }
            )
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise exceptions.AuthenticationFailed('Invalid token')

        return (TokenUser(payload), payload)

    def authenticate_header(self, request: Request) -> str:
        return self.keyword


class TokenUser:
    """
    User object created from JWT token payload.
    """

    def __init__(self, payload: Dict):
        self.payload = payload
        self.id = payload.get('sub')
        self.email = payload.get('email')
        app_metadata = payload.get('app_metadata') or {}
        self.role = app_metadata.get('role') or payload.get('user_role') or DEFAULT_ROLE
        self.is_active = True
        self.is_authenticated = True
        self.is_anonymous = False

    def __str__(self) -> str:
        return f"TokenUser({self.email})"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def generate_access_token(
    user_id: str,
    email: str = None,
    role: str = DEFAULT_ROLE,
    lifetime: timedelta = None,
) -> str:
    """Sign a token the way the auth provider does. Used by tests and tooling."""
    jwt_settings = settings.JWT_SETTINGS
    now = datetime.now(dt_timezone.utc)

    payload = {
        'sub': str(user_id),
        'email': email,
        'aud': jwt_settings['AUDIENCE'],
        'app_metadata': {'role': role},
        'iat': now,
        'exp': now + (lifetime or jwt_settings['ACCESS_TOKEN_LIFETIME']),
    }

    return jwt.encode(
        payload,
        jwt_settings['SECRET'],
        algorithm=jwt_settings['ALGORITHM']
    )

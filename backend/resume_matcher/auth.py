"""
Auth Service
=============
Signup, login and per-request authentication.

Tokens are stateless: `authenticate` re-reads the user from the store on
every request, so a token for a user that no longer resolves is rejected
even while its signature is still valid.
"""

import logging
from typing import Dict, Optional, Tuple, Union

from .config import Settings
from .errors import AuthError, ConflictError, NotFoundError, TokenError, ValidationError
from .models import User
from .security import (
    BCRYPT_MAX_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from .store import UserStore

logger = logging.getLogger(__name__)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AuthService:

    def __init__(self, store: UserStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def signup(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        phone_num: Optional[Union[int, str]],
        password: Optional[str],
    ) -> Tuple[str, Dict[str, str]]:
        if any(_blank(v) for v in (first_name, last_name, email, phone_num, password)):
            raise ValidationError("All fields are required")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")

        email = email.strip()
        if await self.store.get_by_email(email):
            raise ConflictError()

        user = User(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            phone_num=phone_num,
            password=hash_password(password, rounds=self.settings.bcrypt_rounds),
        )
        await self.store.create_user(user)
        logger.info(f"Signed up user {user.id[:8]}...")
        return self.issue_token(user), self.profile(user)

    async def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, Dict[str, str]]:
        if _blank(email) or _blank(password):
            raise ValidationError("Email and password are required")
        user = await self.store.get_by_email(email.strip())
        if user is None:
            raise NotFoundError()
        if not verify_password(password, user.password):
            raise AuthError("Invalid password")
        return self.issue_token(user), self.profile(user)

    async def authenticate(self, token: Optional[str]) -> User:
        if not token:
            raise TokenError("Authentication required")
        email = decode_access_token(token, self.settings)
        user = await self.store.get_by_email(email)
        if user is None:
            raise TokenError("User not found")
        return user

    def issue_token(self, user: User) -> str:
        return create_access_token(user.email, self.settings)

    @staticmethod
    def profile(user: User) -> Dict[str, str]:
        return user.profile().model_dump(by_alias=True)

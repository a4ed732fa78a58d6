import logging
import secrets
from abc import ABC, abstractmethod
from typing import Dict, Optional

from supabase import AsyncClient

from app.models.user import AuthSession, AuthUser

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    pass


class EmailNotVerifiedError(IdentityError):
    pass


class IdentityProvider(ABC):
    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: str) -> AuthUser: ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[AuthUser]: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None: ...


def _to_auth_user(user) -> AuthUser:
    metadata = user.user_metadata or {}
    return AuthUser(
        id=str(user.id),
        email=user.email,
        full_name=metadata.get("full_name"),
        email_verified=user.email_confirmed_at is not None,
    )


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, client: AsyncClient):
        self.client = client

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthUser:
        result = await self.client.auth.sign_up(
            {
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            }
        )
        if not result.user:
            raise IdentityError("Sign-up failed")
        return _to_auth_user(result.user)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        result = await self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        if not result or not result.session or not result.user:
            raise IdentityError("Invalid credentials")
        if result.user.email_confirmed_at is None:
            raise EmailNotVerifiedError("Email address has not been verified")
        return AuthSession(
            access_token=result.session.access_token,
            refresh_token=result.session.refresh_token,
            expires_in=result.session.expires_in,
        )

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        response = await self.client.auth.get_user(access_token)
        if not response or not response.user:
            return None
        return _to_auth_user(response.user)

    async def delete_user(self, user_id: str) -> None:
        await self.client.auth.admin.delete_user(user_id)
        logger.info(f"Deleted identity {user_id}")


class MemoryIdentityProvider(IdentityProvider):
    """Local identity backend. Accounts start unverified unless
    ``auto_confirm`` is set; ``confirm_email`` stands in for the mail link."""

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm
        self._users: Dict[str, dict] = {}
        self._tokens: Dict[str, str] = {}

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthUser:
        if any(u["email"] == email for u in self._users.values()):
            raise IdentityError("User already registered")
        user_id = secrets.token_hex(12)
        self._users[user_id] = {
            "email": email,
            "password": password,
            "full_name": full_name,
            "email_verified": self.auto_confirm,
        }
        return self._auth_user(user_id)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        for user_id, user in self._users.items():
            if user["email"] == email and user["password"] == password:
                if not user["email_verified"]:
                    raise EmailNotVerifiedError("Email address has not been verified")
                return AuthSession(access_token=self.issue_token(user_id))
        raise IdentityError("Invalid credentials")

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        user_id = self._tokens.get(access_token)
        if user_id is None or user_id not in self._users:
            return None
        return self._auth_user(user_id)

    async def delete_user(self, user_id: str) -> None:
        if self._users.pop(user_id, None) is None:
            raise IdentityError(f"User {user_id} not found")
        self._tokens = {t: u for t, u in self._tokens.items() if u != user_id}

    def confirm_email(self, user_id: str) -> None:
        self._users[user_id]["email_verified"] = True

    def issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(24)
        self._tokens[token] = user_id
        return token

    def has_user(self, user_id: str) -> bool:
        return user_id in self._users

    def _auth_user(self, user_id: str) -> AuthUser:
        user = self._users[user_id]
        return AuthUser(
            id=user_id,
            email=user["email"],
            full_name=user["full_name"],
            email_verified=user["email_verified"],
        )

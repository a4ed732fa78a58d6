from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.db.database import get_document_store, get_identity_provider
from app.db.identity import IdentityProvider
from app.db.store import DocumentStore
from app.models.profile import Profile
from app.models.user import AuthUser
from app.services.profile_service import ProfileService

security = HTTPBearer(auto_error=False)


def get_store() -> DocumentStore:
    """Get the configured document store."""
    return get_document_store()


def get_identity() -> IdentityProvider:
    """Get the configured identity provider."""
    return get_identity_provider()


async def authenticate_token(token: str, identity: IdentityProvider) -> AuthUser:
    """Resolve a bearer token to a verified user, or raise 401/403."""
    try:
        user = await identity.get_user(token)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user"
        )
    if not user.email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Email address not verified"
        )
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identity: IdentityProvider = Depends(get_identity),
) -> AuthUser:
    """Get the current user from the request."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token"
        )
    return await authenticate_token(credentials.credentials, identity)


async def get_current_user_id(user: AuthUser = Depends(get_current_user)) -> str:
    return user.id


async def get_current_profile(
    current_user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
) -> Profile:
    """Get the current user's profile, read fresh for every request."""
    profile = await ProfileService.get_profile(current_user_id, store)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found"
        )
    return profile

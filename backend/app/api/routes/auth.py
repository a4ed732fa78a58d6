from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, EmailStr, Field

from app.api.dependencies import get_current_user, get_identity, get_store
from app.db.identity import EmailNotVerifiedError, IdentityError, IdentityProvider
from app.db.store import DocumentStore
from app.models.user import AuthSession, AuthUser
from app.services.profile_service import ProfileService

router = APIRouter()


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user: UserRegister,
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Email/password registration. Creates the starting profile; the
    account stays unusable until the email address is verified."""
    name = user.full_name or user.email.split("@")[0]
    try:
        auth_user = await identity.sign_up(user.email, user.password, name)
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await ProfileService.create_profile(auth_user.id, name, auth_user.email, store)

    return {
        "user_id": auth_user.id,
        "email": auth_user.email,
        "email_verified": auth_user.email_verified,
    }


@router.post("/login", response_model=AuthSession)
async def login(
    creds: UserLogin,
    identity: IdentityProvider = Depends(get_identity),
):
    """Email/password login. Returns access and refresh tokens."""
    try:
        return await identity.sign_in(creds.email, creds.password)
    except EmailNotVerifiedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("/me", response_model=AuthUser)
async def get_current_identity(current_user: AuthUser = Depends(get_current_user)):
    """Get the authenticated identity."""
    return current_user

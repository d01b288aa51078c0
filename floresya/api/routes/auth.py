"""
Authentication routes

Rate limited to slow down credential stuffing.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from floresya.api.deps import get_current_user, get_user_service
from floresya.core.rate_limit import auth_limit, limiter
from floresya.core.security import create_user_token
from floresya.models.user import User
from floresya.schemas.common import envelope
from floresya.schemas.user import Token, UserCreate, UserLogin, UserResponse
from floresya.services.user_service import UserService

router = APIRouter()


def _token_for(user: User) -> dict:
    token = create_user_token(user.id, user.role)
    return Token(access_token=token, user=UserResponse.model_validate(user)).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_limit)
async def register(
    request: Request,
    user_data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    user = await service.register(user_data)
    return envelope(_token_for(user), "User registered successfully")


@router.post("/login")
@limiter.limit(auth_limit)
async def login(
    request: Request,
    credentials: UserLogin,
    service: UserService = Depends(get_user_service),
):
    user = await service.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return envelope(_token_for(user), "Login successful")


@router.get("/profile")
async def profile(user: User = Depends(get_current_user)):
    return envelope(UserResponse.model_validate(user).model_dump(mode="json"))

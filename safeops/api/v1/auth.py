from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from safeops.core.security import get_container, get_current_user
from safeops.schemas.auth import SignUp, Token, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignUp, container=Depends(get_container)):
    return await container.auth.sign_up(payload.email, payload.password, payload.full_name, payload.role)


@router.post("/token", response_model=Token)
async def token(form_data: OAuth2PasswordRequestForm = Depends(), container=Depends(get_container)):
    # OAuth2 password flow: the "username" field carries the email
    access_token = await container.auth.sign_in(form_data.username, form_data.password)
    return Token(access_token=access_token, expires_in=container.auth.expire_minutes * 60)


@router.get("/me", response_model=UserRead)
async def me(user=Depends(get_current_user)):
    return user

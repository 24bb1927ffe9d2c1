# realtime_api/api/auth.py
import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from realtime_api.api.dependencies import (
    get_config,
    get_current_user,
    get_security_service,
    get_user_interactor,
)
from realtime_api.config import AppConfig
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.security import SecurityService
from realtime_api.interactors.user_interactor import UserInteractor

router = APIRouter()


@router.post("/login", response_model=schemas.TokenResponse)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    user_interactor: UserInteractor = Depends(get_user_interactor),
    config: AppConfig = Depends(get_config),
    security_service: SecurityService = Depends(get_security_service),
):
    user = await user_interactor.verify_user_password(
        form_data.username, form_data.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, access_expire = security_service.create_access_token(
        user.id,
        expires_delta=datetime.timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return schemas.TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_at=access_expire,
        user_id=user.id,
    )


@router.post("/register", response_model=schemas.User, status_code=201)
async def register_user(
    user: schemas.UserCreate,
    user_interactor: UserInteractor = Depends(get_user_interactor),
):
    new_user = await user_interactor.create_user(user)
    if not new_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already registered",
        )
    return new_user


@router.get("/me", response_model=schemas.User)
async def read_current_user(current_user: schemas.User = Depends(get_current_user)):
    return current_user

from fastapi import APIRouter, Depends, status
from typing import Optional

from sliceurl.dependencies import get_current_user_id, get_identity_manager
from sliceurl.json_utils import api_response
from sliceurl.rate_limit import auth_limiter
from sliceurl.schemas import (
    AccountUpdate, LoginResponse, PasswordChange, SocialAuthRequest,
    UserLogin, UserRegister, UserResponse
)
from sliceurl.services.identity import IdentityManager

router = APIRouter(tags=["auth"])

# Регистрация
@router.post("/auth/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(auth_limiter)])
async def register_user(
    payload: UserRegister,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Регистрирует пользователя и отправляет письмо подтверждения"""
    user = identity.register(payload.email, payload.password, payload.username, payload.full_name)

    return api_response(
        status.HTTP_201_CREATED,
        "User registered successfully",
        {"user": UserResponse.model_validate(user).to_response()}
    )

# Подтверждение аккаунта по ссылке из письма
@router.get("/auth/confirm-account")
async def confirm_account(
    username: Optional[str] = None,
    token: Optional[str] = None,
    identity: IdentityManager = Depends(get_identity_manager)
):
    identity.confirm_account(username, token)

    return api_response(status.HTTP_200_OK, "Account confirmed successfully")

# Вход по email и паролю
@router.post("/auth/login", dependencies=[Depends(auth_limiter)])
async def login_user(
    payload: UserLogin,
    identity: IdentityManager = Depends(get_identity_manager)
):
    user, access_token = identity.login(payload.email, payload.password)

    data = LoginResponse.model_validate(
        {**UserResponse.model_validate(user).model_dump(), "access_token": access_token}
    )
    return api_response(status.HTTP_200_OK, "Login successful", {"user": data.to_response()})

# Вход через Google / GitHub
@router.post("/auth/social")
async def social_auth(
    payload: SocialAuthRequest,
    identity: IdentityManager = Depends(get_identity_manager)
):
    user, access_token, auth_type = identity.social_auth(payload.access_token)

    data = LoginResponse.model_validate(
        {**UserResponse.model_validate(user).model_dump(), "access_token": access_token}
    )
    return api_response(status.HTTP_200_OK, f"Login successful using {auth_type}", {"user": data.to_response()})

# Смена пароля
@router.put("/auth/change-password")
async def change_password(
    payload: PasswordChange,
    user_id: str = Depends(get_current_user_id),
    identity: IdentityManager = Depends(get_identity_manager)
):
    identity.change_password(user_id, payload.old_password, payload.new_password)

    return api_response(status.HTTP_200_OK, "Password updated successfully")

# Обновление профиля
@router.patch("/users/update-account")
async def update_account(
    payload: AccountUpdate,
    user_id: str = Depends(get_current_user_id),
    identity: IdentityManager = Depends(get_identity_manager)
):
    user = identity.update_account(user_id, payload.username, payload.full_name)

    return api_response(
        status.HTTP_200_OK,
        "Account updated successfully",
        {"user": UserResponse.model_validate(user).to_response()}
    )

# Получение своего аккаунта
@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    identity: IdentityManager = Depends(get_identity_manager)
):
    user = identity.get_user(current_user_id, user_id)

    return api_response(
        status.HTTP_200_OK,
        "User retrieved successfully",
        {"user": UserResponse.model_validate(user).to_response()}
    )

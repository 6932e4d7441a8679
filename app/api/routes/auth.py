# app/api/routes/auth.py

from fastapi import APIRouter, Depends, Request, status
from fastapi_users import FastAPIUsers
from models.registered_user import RegisteredUser
from schemas.user_schema import UserRead, UserCreate, UserUpdate
from services.user_manager import UserManager, get_user_manager
from infrastructure.auth_config import auth_backend


# Initialize FastAPIUsers with our user manager and auth backend
fastapi_users = FastAPIUsers[RegisteredUser, int](
    get_user_manager=get_user_manager,
    auth_backends=[auth_backend],
)

# Create routers
auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
users_router = APIRouter(prefix="/users", tags=["Users"])

# POST /auth/jwt/login, POST /auth/jwt/logout
auth_router.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/jwt",
)

# POST /auth/register
auth_router.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
)

# POST /auth/forgot-password, POST /auth/reset-password
auth_router.include_router(
    fastapi_users.get_reset_password_router(),
)

# POST /auth/request-verify-token, POST /auth/verify
auth_router.include_router(
    fastapi_users.get_verify_router(UserRead),
)

# Dependency to get current active user
current_active_user = fastapi_users.current_user(active=True)


@users_router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_current_user(
    request: Request,
    user: RegisteredUser = Depends(current_active_user),
    user_manager: UserManager = Depends(get_user_manager),
):
    """
    Permanently delete the current user account.

    Lobbies the user created are deleted with it and their memberships in
    other lobbies are dropped. The bearer token stops working immediately.
    """
    await user_manager.delete(user, request=request)
    return None


# GET/PATCH /users/me
# Included after the custom delete endpoint so DELETE /users/me is not taken by /{id}
users_router.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
)

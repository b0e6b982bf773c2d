"""Authentication endpoints.

Provides REST endpoints for:
- Guest and staff password login, returning the bearer token to send on
  later requests
- Guest sign-up
- Logout
- The signed-in user and their profile
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from hotel_api.dependencies import get_auth_service, get_request_session
from hotel_api.models.auth import (
    GuestResponse,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    SignupRequest,
    SuccessMessage,
    UserResponse,
)
from hotel_core.models import BookingError, ErrorCode, GuestCreate, GuestUpdate
from hotel_core.services.gateway import SessionContext
from hotel_core.services.identity import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    summary="Sign in",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid credentials or no profile"},
        403: {"description": "Staff login without a staff account"},
    },
)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    session = await auth.login(body.email, body.password, body.user_type)
    return LoginResponse.from_session(session)


@router.post(
    "/signup",
    summary="Create a guest account",
    response_model=GuestResponse,
    status_code=HTTP_201_CREATED,
    responses={400: {"description": "Invalid details or account refused"}},
)
async def signup(
    body: SignupRequest,
    auth: AuthService = Depends(get_auth_service),
) -> GuestResponse:
    profile = GuestCreate(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
    )
    guest = await auth.signup(body.email, body.password, profile, body.confirm_password)
    return GuestResponse.from_guest(guest)


@router.post("/logout", summary="Sign out", response_model=SuccessMessage)
async def logout(
    auth: AuthService = Depends(get_auth_service),
    session: SessionContext = Depends(get_request_session),
) -> SuccessMessage:
    await auth.logout(session)
    return SuccessMessage(message="Logged out successfully")


@router.get(
    "/me",
    summary="Current user",
    response_model=UserResponse,
    responses={401: {"description": "Not signed in"}},
)
async def me(session: SessionContext = Depends(get_request_session)) -> UserResponse:
    if session.user is None:
        raise BookingError(ErrorCode.AUTH_REQUIRED)
    return UserResponse.from_user(session.user)


@router.patch(
    "/me/profile",
    summary="Update own guest profile",
    response_model=GuestResponse,
    responses={400: {"description": "Invalid field"}, 401: {"description": "Guest login required"}},
)
async def update_profile(
    body: ProfileUpdateRequest,
    auth: AuthService = Depends(get_auth_service),
    session: SessionContext = Depends(get_request_session),
) -> GuestResponse:
    guest = await auth.update_guest_profile(GuestUpdate(**body.model_dump()), session)
    return GuestResponse.from_guest(guest)

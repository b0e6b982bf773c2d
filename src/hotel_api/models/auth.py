"""API models for authentication endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hotel_core.models import AuthenticatedUser, Guest, StaffRole, UserType
from hotel_core.services.gateway import SessionContext


class LoginRequest(BaseModel):
    """Password sign-in for a guest or staff member."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"email": "frontdesk@hotel.ph", "password": "secret1", "user_type": "Staff"}
            ]
        },
    )

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Account password")
    user_type: UserType = Field(default=UserType.GUEST, description="Which login was chosen")


class SignupRequest(BaseModel):
    """Guest self-registration."""

    email: EmailStr
    password: str = Field(..., description="At least 6 characters")
    confirm_password: str | None = None
    first_name: str = Field(..., examples=["Juan"])
    last_name: str = Field(..., examples=["Dela Cruz"])
    phone: str | None = Field(default=None, examples=["09123456789"])


class ProfileUpdateRequest(BaseModel):
    """Fields a signed-in guest may change."""

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = Field(default=None, examples=["1000"])


class SuccessMessage(BaseModel):
    success: bool = True
    message: str


class UserResponse(BaseModel):
    """The signed-in user with their profile name flattened in."""

    email: str
    user_type: UserType
    guest_id: int | None = None
    staff_id: int | None = None
    first_name: str = ""
    last_name: str = ""
    role: StaffRole | None = None

    @classmethod
    def from_user(cls, user: AuthenticatedUser) -> "UserResponse":
        profile = user.staff_data if user.is_staff else user.guest_data
        return cls(
            email=user.email,
            user_type=user.user_type,
            guest_id=user.guest_id,
            staff_id=user.staff_id,
            first_name=profile.first_name if profile else "",
            last_name=profile.last_name if profile else "",
            role=user.role,
        )


class LoginResponse(UserResponse):
    """The signed-in user plus the bearer token for later requests."""

    access_token: str
    token_type: str = "bearer"

    @classmethod
    def from_session(cls, session: SessionContext) -> "LoginResponse":
        user = UserResponse.from_user(session.user)
        return cls(**user.model_dump(), access_token=session.token)


class GuestResponse(BaseModel):
    """Guest profile as returned to its owner."""

    guest_id: int
    first_name: str
    middle_name: str = ""
    last_name: str
    email: str
    phone: str | None = None
    address: str = ""
    city: str = ""
    postal_code: int | None = None

    @classmethod
    def from_guest(cls, guest: Guest) -> "GuestResponse":
        return cls(**guest.model_dump())

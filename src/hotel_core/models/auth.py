"""Authentication models.

AuthenticatedUser is a session projection: it is rebuilt from the guest or
staff table (keyed by the session email) on every sign-in and auth event
and is never persisted on its own.
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import StaffRole, UserType


class AuthSession(BaseModel):
    """Session issued by the identity provider."""

    model_config = ConfigDict(strict=True)

    access_token: str = Field(..., description="Opaque bearer token")
    email: str | None = Field(default=None, description="Email of the signed-in user")
    user_id: str | None = Field(default=None, description="Provider user ID")


class GuestProfile(BaseModel):
    """Profile snippet joined from the guest table."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str | None = None
    address: str = ""
    city: str = ""
    postal_code: int | None = None


class StaffProfile(BaseModel):
    """Profile snippet joined from the staff table."""

    first_name: str = ""
    last_name: str = ""
    role: StaffRole | None = None


class AuthenticatedUser(BaseModel):
    """The signed-in principal, either a guest or a staff member."""

    model_config = ConfigDict(strict=True)

    email: str
    user_type: UserType
    guest_id: int | None = None
    staff_id: int | None = None
    guest_data: GuestProfile | None = None
    staff_data: StaffProfile | None = None

    @property
    def is_staff(self) -> bool:
        return self.user_type == UserType.STAFF and self.staff_id is not None

    @property
    def is_guest(self) -> bool:
        return self.user_type == UserType.GUEST and self.guest_id is not None

    @property
    def role(self) -> StaffRole | None:
        return self.staff_data.role if self.staff_data else None

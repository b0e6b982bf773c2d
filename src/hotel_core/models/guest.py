"""Guest model for customer records."""

from pydantic import BaseModel, ConfigDict, Field


class Guest(BaseModel):
    """A guest (customer) known to the hotel.

    Created at sign-up, or on the first walk-in booking when no guest
    with the same email exists yet.
    """

    model_config = ConfigDict(strict=True)

    guest_id: int = Field(..., description="Unique guest ID")
    first_name: str = Field(default="", description="Given name")
    middle_name: str = Field(default="", description="Middle name")
    last_name: str = Field(default="", description="Family name")
    email: str = Field(default="", description="Email address; lookup key")
    phone: str | None = Field(default=None, description="PH mobile number")
    address: str = Field(default="", description="Street address")
    city: str = Field(default="", description="City")
    postal_code: int | None = Field(default=None, description="4-digit postal code")

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class GuestCreate(BaseModel):
    """Data required to create a new guest."""

    model_config = ConfigDict(strict=True)

    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    middle_name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""


class GuestUpdate(BaseModel):
    """Fields a guest can change on their own profile."""

    model_config = ConfigDict(strict=True)

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None

"""Staff model."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import StaffRole, StaffShift, StaffStatus


class Staff(BaseModel):
    """A hotel staff member."""

    model_config = ConfigDict(strict=True)

    staff_id: int = Field(..., description="Unique staff ID")
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    email: str = Field(default="")
    role: StaffRole | None = Field(default=None, description="Drives permission scoping")
    shift: StaffShift | None = Field(default=None)
    status: StaffStatus | None = Field(default=None)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

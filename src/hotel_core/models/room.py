"""Room and room type models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .enums import RoomStatus


class RoomType(BaseModel):
    """Reference data: a category of room with its nightly rate."""

    model_config = ConfigDict(strict=True)

    roomtype_id: int = Field(..., description="Unique room type ID")
    type_name: str = Field(..., description="Display name, e.g. 'Single'")
    base_rate: Decimal = Field(..., ge=0, description="Nightly rate in PHP")


class Room(BaseModel):
    """A bookable room.

    Status is normally derived from reservation transitions; staff may also
    override it manually (e.g. Maintenance).
    """

    model_config = ConfigDict(strict=True)

    room_id: int = Field(..., description="Unique room ID")
    room_number: str = Field(..., description="Door number, e.g. '101'")
    roomtype_id: int | None = Field(default=None, description="Reference to RoomType")
    status: RoomStatus = Field(default=RoomStatus.AVAILABLE, description="Operational status")
    room_type: RoomType | None = Field(default=None, description="Resolved room type")

    @property
    def base_rate(self) -> Decimal:
        """Nightly rate of the resolved room type, zero when unresolved."""
        return self.room_type.base_rate if self.room_type else Decimal("0")

"""
Client and Pet models.

Entities:
- Client: A pet owner who books services
- Pet: A pet owned by a client; must be confirmed by staff before self-service booking
"""

import uuid
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Boolean, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.staff import Staff


class Client(BaseModel):
    """
    A pet owner.

    default_staff_id names the staff member (resource pool) whose vehicle
    capacity applies when the client books staff-capacity services.
    """

    __tablename__ = "clients"

    user_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Identity provider user ID"
    )

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    default_staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("staff.id"),
        nullable=True,
        doc="Staff member assigned to collect this client's pets"
    )

    default_staff: Mapped[Optional["Staff"]] = relationship("Staff")

    pets: Mapped[list["Pet"]] = relationship(
        "Pet",
        back_populates="client",
    )

    __table_args__ = (
        Index("idx_client_user", "user_id"),
    )

    @property
    def full_name(self) -> Optional[str]:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or None

    def __repr__(self) -> str:
        return f"<Client(user_id='{self.user_id}', email='{self.email}')>"


class Pet(BaseModel):
    """A pet belonging to a client."""

    __tablename__ = "pets"

    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
    )

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    breed: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    size: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    is_confirmed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Staff have vetted this pet; required for self-service booking"
    )

    client: Mapped["Client"] = relationship("Client", back_populates="pets")

    __table_args__ = (
        Index("idx_pet_client", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Pet(name='{self.name}', confirmed={self.is_confirmed})>"

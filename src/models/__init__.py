"""
SQLAlchemy models for the Pet Daycare Booking service.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from src.models.base import Base, BaseModel, GUID, get_json_type

# Import all models (must be imported for Alembic autogenerate)
from src.models.services import Service, Site, Field
from src.models.staff import Vehicle, Staff, StaffAvailability
from src.models.clients import Client, Pet
from src.models.availability import ServiceAvailability
from src.models.bookings import Booking, BookingClient, BookingPet

# Export all for easy importing
__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "get_json_type",
    # Service models
    "Service",
    "Site",
    "Field",
    # Staff models
    "Vehicle",
    "Staff",
    "StaffAvailability",
    # Client models
    "Client",
    "Pet",
    # Availability rules
    "ServiceAvailability",
    # Booking models
    "Booking",
    "BookingClient",
    "BookingPet",
]

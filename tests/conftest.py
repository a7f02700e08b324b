"""
Pytest configuration and fixtures for Pet Daycare Booking tests.

Provides database session fixtures and sample data for testing.

Sample calendar (Europe/London, BST in June):
- 2030-06-05 is a Wednesday
- 2030-06-09 is a Sunday
- 2030-06-10 is a Monday
"""

import uuid
from datetime import time
from decimal import Decimal
from typing import Generator

import pytest
import sqlalchemy as sa
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.models import (
    Base,
    Client,
    Field,
    Pet,
    Service,
    ServiceAvailability,
    Site,
    Staff,
    StaffAvailability,
    Vehicle,
)


# Configure SQLite to enforce foreign key constraints in tests
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Create a clean database session for each test.

    Uses an in-memory SQLite database on a StaticPool so the API test
    client's worker threads share the same connection.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Disable foreign key constraints for drop operations
        with engine.begin() as connection:
            connection.execute(sa.text("PRAGMA foreign_keys=OFF"))
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sample_service(db_session: Session) -> Service:
    """A field-hire service priced per pet."""
    service = Service(
        name="Field Hire",
        description="Private secure field for your dogs",
        service_type="field_hire",
        default_price=Decimal("12.50"),
        requires_field_selection=False,
        active=True,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def pool_service(db_session: Session) -> Service:
    """A pick-up service whose capacity is the staff member's vehicle."""
    service = Service(
        name="Doggy Daycare",
        service_type="daycare",
        default_price=Decimal("30.00"),
        active=True,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def sample_fields(db_session: Session) -> list[Field]:
    """Two fields at one site."""
    site = Site(name="Hilltop Farm", address="1 Hill Lane", is_active=True)
    db_session.add(site)
    db_session.flush()
    fields = [
        Field(site_id=site.id, name="Paddock A", field_type="grass"),
        Field(site_id=site.id, name="Paddock B", field_type="agility"),
    ]
    db_session.add_all(fields)
    db_session.commit()
    return fields


@pytest.fixture
def sample_vehicle(db_session: Session) -> Vehicle:
    """A van carrying up to 5 pets."""
    vehicle = Vehicle(make="Ford", model="Transit", license_plate="PET 123", pet_capacity=5)
    db_session.add(vehicle)
    db_session.commit()
    db_session.refresh(vehicle)
    return vehicle


@pytest.fixture
def sample_staff(db_session: Session, sample_vehicle: Vehicle) -> Staff:
    """A staff member driving the sample vehicle, working weekdays 08:00-18:00."""
    staff = Staff(user_id="staff-user-1", role="staff", default_vehicle_id=sample_vehicle.id)
    db_session.add(staff)
    db_session.flush()
    db_session.add(StaffAvailability(
        staff_id=staff.id,
        start_time=time(8, 0),
        end_time=time(18, 0),
        days_of_week=[1, 2, 3, 4, 5],
        is_available=True,
    ))
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def sample_client(db_session: Session, sample_staff: Staff) -> Client:
    """A client assigned to the sample staff member."""
    client = Client(
        user_id="client-user-1",
        email="jane@example.com",
        first_name="Jane",
        last_name="Walker",
        default_staff_id=sample_staff.id,
    )
    db_session.add(client)
    db_session.commit()
    db_session.refresh(client)
    return client


@pytest.fixture
def sample_pets(db_session: Session, sample_client: Client) -> list[Pet]:
    """Six confirmed pets belonging to the sample client."""
    pets = [
        Pet(client_id=sample_client.id, name=f"Dog {i}", breed="Collie", is_confirmed=True)
        for i in range(1, 7)
    ]
    db_session.add_all(pets)
    db_session.commit()
    return pets


@pytest.fixture
def unconfirmed_pet(db_session: Session, sample_client: Client) -> Pet:
    pet = Pet(client_id=sample_client.id, name="New Pup", is_confirmed=False)
    db_session.add(pet)
    db_session.commit()
    db_session.refresh(pet)
    return pet


@pytest.fixture
def other_client_pet(db_session: Session) -> Pet:
    """A confirmed pet belonging to a different client."""
    other = Client(user_id="client-user-2", email="sam@example.com")
    db_session.add(other)
    db_session.flush()
    pet = Pet(client_id=other.id, name="Rex", is_confirmed=True)
    db_session.add(pet)
    db_session.commit()
    db_session.refresh(pet)
    return pet


@pytest.fixture
def field_rule(db_session: Session, sample_service: Service, sample_fields: list[Field]) -> ServiceAvailability:
    """Mon/Wed/Fri 09:00-17:00 on both fields, at most 4 pets per booking."""
    rule = ServiceAvailability(
        id=uuid.uuid4(),
        service_id=sample_service.id,
        field_ids=[str(f.id) for f in sample_fields],
        start_time=time(9, 0),
        end_time=time(17, 0),
        days_of_week=[1, 3, 5],
        use_staff_vehicle_capacity=False,
        max_pets_per_booking=4,
        is_active=True,
    )
    db_session.add(rule)
    db_session.commit()
    db_session.refresh(rule)
    return rule


@pytest.fixture
def pool_rule(db_session: Session, pool_service: Service) -> ServiceAvailability:
    """Weekdays 09:00-17:00 using the client's staff vehicle capacity."""
    rule = ServiceAvailability(
        id=uuid.uuid4(),
        service_id=pool_service.id,
        field_ids=[],
        start_time=time(9, 0),
        end_time=time(17, 0),
        days_of_week=[1, 2, 3, 4, 5],
        use_staff_vehicle_capacity=True,
        is_active=True,
    )
    db_session.add(rule)
    db_session.commit()
    db_session.refresh(rule)
    return rule

"""
Database seeding script for initial accounts and vehicles.

Creates the ADMIN account (admins cannot sign up through the API), one
DRIVER account and a few vehicles for development.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleetdash.app.db.session import AsyncSessionLocal, engine, Base
from fleetdash.app.models.auth_account import AuthAccount
from fleetdash.app.models.user import User
from fleetdash.app.models.vehicle import Vehicle
from fleetdash.app.models.trip import Trip  # registers the trips table for create_all
from fleetdash.app.models.enums import UserRole, DriverStatus, VehicleStatus
from fleetdash.app.core.security import get_password_hash
from sqlalchemy import select

SEED_ACCOUNTS = [
    ("admin@fleet.io", "admin123", "Fleet Admin", UserRole.ADMIN),
    ("driver@fleet.io", "driver123", "Demo Driver", UserRole.DRIVER),
]

SEED_VEHICLES = [
    ("Ford", "Transit", 2021, "FLT-001"),
    ("Mercedes-Benz", "Sprinter", 2022, "FLT-002"),
    ("Toyota", "Hiace", 2020, "FLT-003"),
]


async def seed_users():
    """
    Seed initial accounts and vehicles.

    Creates:
    - 1 ADMIN account + profile
    - 1 DRIVER account + profile
    - 3 available vehicles
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        for email, password, name, role in SEED_ACCOUNTS:
            result = await db.execute(select(AuthAccount).where(AuthAccount.email == email))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value.upper()} account {email} already exists, skipping")
                continue

            account = AuthAccount(
                email=email,
                hashed_password=get_password_hash(password),
                meta_name=name,
                meta_role=role.value,
                is_active=True,
            )
            db.add(account)
            await db.flush()
            db.add(User(id=account.id, email=email, name=name, role=role, status=DriverStatus.AVAILABLE))
            print(f"✅ Created {role.value.upper()} account (email: {email}, password: {password})")

        for make, model, year, plate in SEED_VEHICLES:
            result = await db.execute(select(Vehicle).where(Vehicle.license_plate == plate))
            if result.scalar_one_or_none():
                print(f"ℹ️  Vehicle {plate} already exists, skipping")
                continue
            db.add(Vehicle(make=make, model=model, year=year, license_plate=plate, status=VehicleStatus.AVAILABLE))
            print(f"✅ Created vehicle {make} {model} ({plate})")

        await db.commit()

        print("\n🎉 Seeding completed successfully!")
        print("\nSeeded accounts:")
        for email, password, _, role in SEED_ACCOUNTS:
            print(f"  - {role.value.upper():<7} {email} / {password}")
        print("\nNote: further DRIVER accounts sign up via POST /v1/auth/register")


if __name__ == "__main__":
    asyncio.run(seed_users())

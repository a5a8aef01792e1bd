"""
Seed script -- populates the database with the built-in directory.

Run after migrations:
    python seed.py

Creates:
  - 8 Kathmandu-valley hospitals (with PostGIS location points)
  - 3 sample blood requests linked to those hospitals
"""

import asyncio

from sqlalchemy import text
from geoalchemy2.functions import ST_MakePoint

from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.directory import BLOOD_REQUESTS, directory_hospitals
from src.infrastructure.models import BloodRequestModel, HospitalModel


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM hospitals"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Hospitals ─────────────────────────────────────────────────
        hospitals = directory_hospitals()
        for h in hospitals:
            session.add(
                HospitalModel(
                    **h,
                    location=ST_MakePoint(h["longitude"], h["latitude"]),
                )
            )
        await session.flush()
        print(f"  Created {len(hospitals)} hospitals")

        # ── Blood requests ────────────────────────────────────────────
        for r in BLOOD_REQUESTS:
            session.add(BloodRequestModel(**r, is_active=True, is_verified=True))
        await session.flush()
        print(f"  Created {len(BLOOD_REQUESTS)} blood requests")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

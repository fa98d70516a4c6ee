#!/usr/bin/env python3
"""
Seed script: creates a demo owner, company, property and a claimable 20% OFF promotion.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from uuid import uuid4

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from vrms.database import async_session_maker, engine


OWNER_EMAIL = "owner@serengeti-lodge.example"


async def seed():
    async with async_session_maker() as session:
        # Owner profile (normally provisioned through the auth provider)
        result = await session.execute(
            text("SELECT id FROM users WHERE email = :email"),
            {"email": OWNER_EMAIL},
        )
        row = result.fetchone()
        if row:
            owner_id = str(row[0])
            print("Owner already exists, using existing.")
        else:
            owner_id = str(uuid4())
            await session.execute(
                text("""
                    INSERT INTO users (id, email, full_name, user_type)
                    VALUES (:id, :email, 'Demo Owner', 'owner')
                """),
                {"id": owner_id, "email": OWNER_EMAIL},
            )
            await session.commit()

        # Company
        result = await session.execute(
            text("SELECT id FROM companies WHERE user_id = :uid"),
            {"uid": owner_id},
        )
        row = result.fetchone()
        if row:
            company_id = str(row[0])
        else:
            company_id = str(uuid4())
            await session.execute(
                text("""
                    INSERT INTO companies (id, name, user_id)
                    VALUES (:id, 'Serengeti Stays', :uid)
                """),
                {"id": company_id, "uid": owner_id},
            )
            await session.commit()

        # Property
        result = await session.execute(
            text("SELECT id FROM properties WHERE company_id = :cid"),
            {"cid": company_id},
        )
        row = result.fetchone()
        if row:
            property_id = str(row[0])
        else:
            property_id = str(uuid4())
            await session.execute(
                text("""
                    INSERT INTO properties (id, company_id, name)
                    VALUES (:id, :cid, 'Serengeti Lodge')
                """),
                {"id": property_id, "cid": company_id},
            )
            await session.commit()

        # Promotion
        promotion_id = str(uuid4())
        await session.execute(
            text("""
                INSERT INTO room_promotions
                (id, name, description, discount_type, discount_value, is_active, is_claimable)
                VALUES (:id, 'Early Bird', 'Book 60 days ahead', 'percentage', 20, true, true)
            """),
            {"id": promotion_id},
        )
        await session.commit()

    await engine.dispose()

    print("Seed complete!")
    print(f"Owner: {owner_id}")
    print(f"Property: {property_id}")
    print(f"Promotion: {promotion_id}")
    print("Example: curl -X POST http://localhost:8000/promotions/claim \\")
    print('  -H "Content-Type: application/json" \\')
    print(
        f'  -d \'{{"promotion_id":"{promotion_id}","property_id":"{property_id}",'
        '"guest_name":"Jane Guest","guest_email":"new@example.com","guest_phone":"+15550100"}\''
    )


if __name__ == "__main__":
    asyncio.run(seed())

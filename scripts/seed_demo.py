#!/usr/bin/env python3
"""
Seed script to create demo users, catalog and site settings
"""

import asyncio

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models.menu import Category, MenuItem
    from app.models.setting import Setting
    from app.models.user import User, UserRole
    from app.services import settings_store

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo users already exist
        result = await db.execute(select(User).where(User.matricule == "admin"))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        users = [
            ("admin", "admin123", "Administrator", UserRole.ADMIN),
            ("manager", "manager123", "Canteen Manager", UserRole.MANAGER),
            ("E12345", "test123", "Test Employee", UserRole.USER),
        ]
        for matricule, password, full_name, role in users:
            db.add(User(
                matricule=matricule,
                hashed_password=pwd_context.hash(password),
                full_name=full_name,
                role=role,
            ))

        menu_items = [
            {"label": "Tajine poulet", "category": Category.MAIN, "description": "Chicken tajine with olives and preserved lemon"},
            {"label": "Poisson grillé", "category": Category.MAIN, "description": "Grilled fish of the day"},
            {"label": "Salade marocaine", "category": Category.STARTER, "description": "Tomato, cucumber and onion salad"},
        ]
        for item_data in menu_items:
            db.add(MenuItem(**item_data))

        for key, value in settings_store.defaults().items():
            db.add(Setting(key=key, value=value))

        await db.commit()

        print(f"""
Demo data created successfully!

Users (matricule / password):
  Admin:    admin / admin123
  Manager:  manager / manager123
  Employee: E12345 / test123

Menu: {len(menu_items)} items created

Plan a day with POST /menu/day before reserving.
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())

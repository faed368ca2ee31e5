"""
Database seeding utilities for reference and demo data.

Seeds:
- Roles (ADMIN, MANAGER, EMPLOYEE)
- Demo tenant (Demo Store) with an admin user
- Two suppliers and a handful of products, one of them below its minimum stock

Seeding is idempotent: rows that already exist are left untouched.

Usage:
  python -m inventory_api.db.run_migrations upgrade head
  python -m inventory_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
import os
from decimal import Decimal
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.core.security import get_password_hash
from inventory_api.db.models import Product, Supplier, Tenant, User
from inventory_api.db.models.tenancy import PlanType
from inventory_api.db.session import get_session_maker
from inventory_api.repositories.security import RoleRepository

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    "ADMIN": "Full access to the tenant, its users and settings",
    "MANAGER": "Manages products, stock, orders and suppliers",
    "EMPLOYEE": "Records stock movements and orders",
}

DEMO_TENANT = "Demo Store"
DEMO_ADMIN_EMAIL = "admin@demostore.com"

SUPPLIERS = [
    {"name": "Global Parts Ltd", "contact_person": "Ana Ruiz", "email": "sales@globalparts.example"},
    {"name": "Fresh Packaging Co", "contact_person": "Tom Baker", "email": "orders@freshpack.example"},
]

# (sku, name, cost, sale, min_stock, current_stock, supplier index)
PRODUCTS = [
    ("SKU-001", "Wireless Mouse", "8.50", "19.90", 10, 45, 0),
    ("SKU-002", "USB-C Cable 1m", "1.20", "6.99", 25, 12, 0),
    ("SKU-003", "Laptop Stand", "14.00", "39.00", 5, 18, 0),
    ("SKU-004", "Shipping Box M", "0.40", "1.50", 100, 0, 1),
]


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with roles and a demo tenant.

    The demo admin password comes from SEED_ADMIN_PASSWORD (default 'admin12345').
    """
    async with get_session_maker()() as session:
        await _seed_roles(session)
        tenant = await _ensure_tenant(session, DEMO_TENANT)
        await _ensure_admin(session, tenant, os.getenv("SEED_ADMIN_PASSWORD", "admin12345"))
        suppliers = await _seed_suppliers(session, tenant)
        await _seed_products(session, tenant, suppliers)
        await session.commit()


async def _seed_roles(session: AsyncSession) -> None:
    roles = RoleRepository(session)
    for name, description in ROLE_DESCRIPTIONS.items():
        await roles.ensure(name, description)


async def _ensure_tenant(session: AsyncSession, name: str) -> Tenant:
    tenant = (await session.execute(select(Tenant).where(Tenant.name == name))).scalar_one_or_none()
    if tenant is None:
        tenant = Tenant(name=name, plan_type=PlanType.FREE, is_active=True)
        session.add(tenant)
        await session.flush()
        logger.info("Seeded tenant %s", name)
    return tenant


async def _ensure_admin(session: AsyncSession, tenant: Tenant, password: str) -> None:
    existing = (await session.execute(select(User).where(User.email == DEMO_ADMIN_EMAIL))).scalar_one_or_none()
    if existing is not None:
        return
    role = await RoleRepository(session).get_by_name("ADMIN")
    session.add(
        User(
            tenant_id=tenant.id,
            role_id=role.id,
            email=DEMO_ADMIN_EMAIL,
            password_hash=get_password_hash(password),
            full_name="Demo Admin",
        )
    )
    await session.flush()
    logger.info("Seeded admin user %s", DEMO_ADMIN_EMAIL)


async def _seed_suppliers(session: AsyncSession, tenant: Tenant) -> Dict[int, Supplier]:
    seeded: Dict[int, Supplier] = {}
    for idx, data in enumerate(SUPPLIERS):
        supplier = (
            await session.execute(
                select(Supplier).where(Supplier.tenant_id == tenant.id, Supplier.name == data["name"])
            )
        ).scalar_one_or_none()
        if supplier is None:
            supplier = Supplier(tenant_id=tenant.id, **data)
            session.add(supplier)
            await session.flush()
        seeded[idx] = supplier
    return seeded


async def _seed_products(session: AsyncSession, tenant: Tenant, suppliers: Dict[int, Supplier]) -> None:
    existing = set(
        (await session.execute(select(Product.sku).where(Product.tenant_id == tenant.id))).scalars().all()
    )
    for sku, name, cost, sale, min_stock, current, supplier_idx in PRODUCTS:
        if sku in existing:
            continue
        session.add(
            Product(
                tenant_id=tenant.id,
                sku=sku,
                name=name,
                price_cost=Decimal(cost),
                price_sale=Decimal(sale),
                min_stock=min_stock,
                current_stock=current,
                supplier_id=suppliers[supplier_idx].id,
            )
        )
    await session.flush()


if __name__ == "__main__":
    asyncio.run(seed_all())

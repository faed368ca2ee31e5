"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area. Every
tenant-owned query takes the tenant id explicitly. Repositories never commit
on their own; services decide the transaction boundary.
"""

"""
API route modules.

This package contains subrouters for:
- Auth: register, login, refresh, logout and current user
- Tenants: tenant administration, settings and statistics
- Users: profile, avatar and user administration
- Products, Inventory, Orders, Suppliers: tenant business data
- Dashboard and Reports: read models and generated report files

Routers are included from inventory_api.api.main (under the /api/v1 prefix).
"""

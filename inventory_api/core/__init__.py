"""
Core application utilities for settings, security, logging and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Password hashing and JWT helpers
- Request-scoped logging context
- Dependency helpers (current principal, role guards, pagination)
"""

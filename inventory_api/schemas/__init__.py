"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by domain module (auth, products, inventory, orders, etc.)
and also include common reusable models such as pagination and standard responses.
"""

from .common import ErrorResponse, MessageResponse, Page, PageMeta  # noqa: F401

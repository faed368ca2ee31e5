"""
ORM models for tenants, security, catalog, inventory, sales and reports.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .tenancy import (  # noqa: F401
    PlanType,
    Tenant,
)
from .security import (  # noqa: F401
    Role,
    User,
    RefreshToken,
)
from .procurement import (  # noqa: F401
    Supplier,
)
from .master_data import (  # noqa: F401
    Product,
)
from .inventory import (  # noqa: F401
    TransactionType,
    InventoryTransaction,
)
from .sales import (  # noqa: F401
    OrderStatus,
    Order,
    OrderItem,
)
from .analytics import (  # noqa: F401
    ReportType,
    Report,
)

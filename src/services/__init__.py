"""Services package - Business logic layer for Dashboard Tabs.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (tabs, groups, inputs)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- dashboard_tab_service: Tab CRUD, ordering, grouping and duplication
- tab_group_service: Nested group tree management
- tab_input_service: Per-tab custom input parameters
- dashboard_state_service: Whole-state load/save used by the REST API
- import_export_service: JSON export/import of the full configuration

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    database,
    dashboard_tab_service,
    tab_group_service,
    tab_input_service,
    dashboard_state_service,
    import_export_service,
)

from .exceptions import (
    ServiceError,
    ValidationError,
    DashboardTabNotFound,
    TabGroupNotFound,
    TabInputNotFound,
    CircularReferenceError,
)

__all__ = [
    "database",
    "dashboard_tab_service",
    "tab_group_service",
    "tab_input_service",
    "dashboard_state_service",
    "import_export_service",
    "ServiceError",
    "ValidationError",
    "DashboardTabNotFound",
    "TabGroupNotFound",
    "TabInputNotFound",
    "CircularReferenceError",
]

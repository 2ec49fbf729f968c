"""Service layer exception classes for Dashboard Tabs.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Each exception carries the
HTTP status code the API layer responds with.

Exception Hierarchy:
    ServiceError (base, 500)
    ├── ValidationError (400)
    ├── DashboardTabNotFound (404)
    ├── TabGroupNotFound (404)
    ├── TabInputNotFound (404)
    └── CircularReferenceError (409)
"""


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    http_status_code = 500


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Args:
        errors: List of human-readable error messages

    Example:
        >>> raise ValidationError(["Tab name cannot be empty"])
        ValidationError: Validation failed: Tab name cannot be empty
    """

    http_status_code = 400

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DashboardTabNotFound(ServiceError):
    """Raised when a dashboard tab cannot be found by its slug.

    Example:
        >>> raise DashboardTabNotFound("sales-overview")
        DashboardTabNotFound: Tab 'sales-overview' not found
    """

    http_status_code = 404

    def __init__(self, tab_id: str):
        self.tab_id = tab_id
        super().__init__(f"Tab '{tab_id}' not found")


class TabGroupNotFound(ServiceError):
    """Raised when a tab group cannot be found by ID."""

    http_status_code = 404

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Group '{group_id}' not found")


class TabInputNotFound(ServiceError):
    """Raised when a tab input cannot be found by ID."""

    http_status_code = 404

    def __init__(self, input_id: str):
        self.input_id = input_id
        super().__init__(f"Tab input '{input_id}' not found")


class CircularReferenceError(ServiceError):
    """Raised when re-parenting a group would place it inside itself.

    Args:
        group_id: The group being moved
        parent_id: The proposed new parent

    Example:
        >>> raise CircularReferenceError("group_a", "group_b")
        CircularReferenceError: Cannot move group 'group_a' under 'group_b': ...
    """

    http_status_code = 409

    def __init__(self, group_id: str, parent_id: str):
        self.group_id = group_id
        self.parent_id = parent_id
        super().__init__(
            f"Cannot move group '{group_id}' under '{parent_id}': "
            f"would create a circular reference"
        )

"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across tab, group and input operations.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log successful operation
    log_operation(
        logger,
        operation="add_tab",
        outcome="success",
        tab_id="sales-overview",
    )

    # Log rejected operation
    log_operation(
        logger,
        operation="move_group_to_parent",
        outcome="circular_reference",
        level=logging.WARNING,
        group_id="group_1",
        target_parent_id="group_2",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'dashboard_tabs.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'dashboard_tabs.services.dashboard_tab_service'
    """
    # Extract just the module name if full path is provided
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"dashboard_tabs.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "add_tab", "remove_group")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, error details, etc.)
            Common fields:
            - tab_id: Slug of the affected tab
            - group_id: ID of the affected group
            - input_id: ID of the affected tab input
            - error: Error message if outcome is "error"
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

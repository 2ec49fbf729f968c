"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel, generate_public_id
from .tab_group import TabGroup
from .dashboard_tab import DashboardTab
from .tab_input import TabInput
from .enums import TabInputType

__all__ = [
    "Base",
    "BaseModel",
    "generate_public_id",
    "TabGroup",
    "DashboardTab",
    "TabInput",
    "TabInputType",
]

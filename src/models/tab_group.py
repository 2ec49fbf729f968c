"""
TabGroup model for organising dashboard tabs into nested folders.

Groups form a tree through parent_id. A group without a parent sits at the
root level. Tabs reference a group through DashboardTab.group_id; tabs
without a group are shown as "Uncategorized".
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import MAX_NAME_LENGTH


class TabGroup(BaseModel):
    """
    TabGroup model representing a (possibly nested) folder of tabs.

    Attributes:
        public_id: External identifier (e.g., "group_1718000000000_k3j9x0a1b")
        name: Group display name
        sort_order: Position among groups that share the same parent
        parent_id: public_id of the parent group, None for root level
    """

    __tablename__ = "tab_groups"

    public_id = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(MAX_NAME_LENGTH), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    parent_id = Column(
        String(64),
        ForeignKey("tab_groups.public_id", ondelete="SET NULL"),
        nullable=True,
    )

    parent = relationship(
        "TabGroup",
        remote_side=[public_id],
        back_populates="children",
    )
    children = relationship(
        "TabGroup",
        back_populates="parent",
        order_by="TabGroup.sort_order",
    )
    tabs = relationship(
        "DashboardTab",
        back_populates="group",
        order_by="DashboardTab.sort_order",
    )

    __table_args__ = (Index("idx_tab_group_parent", "parent_id"),)

    def __repr__(self) -> str:
        """String representation of tab group."""
        return f"<TabGroup(public_id='{self.public_id}', name='{self.name}')>"

    def to_state_dict(self) -> dict:
        """
        Convert to the persisted-state shape.

        Returns:
            {"id", "name", "order", "parent_id"}
        """
        return {
            "id": self.public_id,
            "name": self.name,
            "order": self.sort_order,
            "parent_id": self.parent_id,
        }

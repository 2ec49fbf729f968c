"""
DashboardTab model for user-defined dashboard pages.

A tab is addressed by its slug, which is derived from the name at creation
time and never changes afterwards (renaming only changes the display name).
"""

from sqlalchemy import Boolean, Column, String, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import (
    MAX_ICON_LENGTH,
    MAX_LINK_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
)
from src.utils.datetime_utils import to_iso


class DashboardTab(BaseModel):
    """
    DashboardTab model representing one dashboard page.

    Attributes:
        slug: URL-friendly identifier, unique (e.g., "sales-overview")
        name: Display name
        is_public: Whether the tab can be accessed via public link
        group_id: public_id of the containing group, None for "Uncategorized"
        link: External URL; when set, opening the tab opens this link
        icon: Icon name (e.g., "IconHome")
        sort_order: Position among tabs in the same group
    """

    __tablename__ = "dashboard_tabs"

    slug = Column(String(MAX_SLUG_LENGTH), nullable=False, unique=True, index=True)
    name = Column(String(MAX_NAME_LENGTH), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    group_id = Column(
        String(64),
        ForeignKey("tab_groups.public_id", ondelete="SET NULL"),
        nullable=True,
    )
    link = Column(String(MAX_LINK_LENGTH), nullable=True)
    icon = Column(String(MAX_ICON_LENGTH), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    group = relationship("TabGroup", back_populates="tabs")
    inputs = relationship(
        "TabInput",
        back_populates="tab",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TabInput.sort_order",
    )

    __table_args__ = (Index("idx_dashboard_tab_group", "group_id", "sort_order"),)

    def __repr__(self) -> str:
        """String representation of dashboard tab."""
        return f"<DashboardTab(slug='{self.slug}', name='{self.name}')>"

    def to_state_dict(self) -> dict:
        """
        Convert to the persisted-state shape.

        Optional fields that are unset are omitted.
        """
        result = {
            "id": self.slug,
            "name": self.name,
            "created_at": to_iso(self.created_at),
            "is_public": bool(self.is_public),
            "order": self.sort_order,
        }
        if self.group_id is not None:
            result["group_id"] = self.group_id
        if self.link:
            result["link"] = self.link
        if self.icon:
            result["icon"] = self.icon
        return result

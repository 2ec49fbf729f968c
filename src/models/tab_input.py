"""
TabInput model for user-defined dashboard parameters.

Inputs belong to a tab and are deleted with it. Each input has a key that is
unique within its tab; the key is what dashboard queries refer to.
"""

from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import TabInputType
from src.utils.constants import MAX_INPUT_KEY_LENGTH, MAX_LABEL_LENGTH, MAX_SLUG_LENGTH
from src.utils.datetime_utils import to_iso


class TabInput(BaseModel):
    """
    TabInput model representing one custom input parameter of a tab.

    Attributes:
        public_id: External identifier (e.g., "tab_input_1718000000000_k3j9x0a")
        tab_slug: Slug of the owning tab
        key: Sanitised key, unique within the tab
        label: Display label
        input_type: "text", "number" or "date"
        value: Current value (always a string)
        default_value: Value restored when the input is reset
        placeholder: Optional placeholder text
        description: Optional help text
        options: Optional list of {"label", "value"} choices
        sort_order: Position within the tab
    """

    __tablename__ = "tab_inputs"

    public_id = Column(String(64), nullable=False, unique=True, index=True)
    tab_slug = Column(
        String(MAX_SLUG_LENGTH),
        ForeignKey("dashboard_tabs.slug", ondelete="CASCADE"),
        nullable=False,
    )
    key = Column(String(MAX_INPUT_KEY_LENGTH), nullable=False)
    label = Column(String(MAX_LABEL_LENGTH), nullable=False)
    input_type = Column(String(10), nullable=False, default=TabInputType.TEXT.value)
    value = Column(Text, nullable=True)
    default_value = Column(Text, nullable=True)
    placeholder = Column(String(MAX_LABEL_LENGTH), nullable=True)
    description = Column(Text, nullable=True)
    options = Column(JSON, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    tab = relationship("DashboardTab", back_populates="inputs")

    __table_args__ = (Index("idx_tab_input_tab", "tab_slug", "sort_order"),)

    def __repr__(self) -> str:
        """String representation of tab input."""
        return f"<TabInput(tab='{self.tab_slug}', key='{self.key}')>"

    def to_state_dict(self) -> dict:
        """
        Convert to the persisted-state shape.

        Returns:
            Dictionary with id, tab_id, key, label, type, value, default_value,
            placeholder, description, options, order, created_at, updated_at
        """
        return {
            "id": self.public_id,
            "tab_id": self.tab_slug,
            "key": self.key,
            "label": self.label,
            "type": self.input_type,
            "value": self.value if self.value is not None else "",
            "default_value": self.default_value if self.default_value is not None else "",
            "placeholder": self.placeholder,
            "description": self.description,
            "options": [dict(option) for option in self.options] if self.options else None,
            "order": self.sort_order,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

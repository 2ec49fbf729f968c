"""
Base model class for all database models.

Provides common functionality and fields for all models:
- Integer primary key
- Timestamp fields (created_at, updated_at)
- Public identifier generation (generate_public_id)
- SQLAlchemy declarative base

Rows are addressed from outside the database by a public string
identifier (tab slug, group/input id) that each model declares itself.
"""

import random
import string
import time

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

from src.utils.datetime_utils import utc_now

# Create the declarative base for all models
Base = declarative_base()

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_public_id(prefix: str, random_length: int = 9) -> str:
    """
    Generate a public identifier like ``group_1718000000000_k3j9x0a1b``.

    Args:
        prefix: Identifier prefix (e.g., "group", "tab_input")
        random_length: Number of random base-36 characters

    Returns:
        Identifier combining prefix, epoch milliseconds and a random suffix
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=random_length))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    All models should inherit from this class to get:
    - id: Primary key (Integer)
    - created_at: Timestamp when record was created
    - updated_at: Timestamp when record was last modified
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        """
        String representation of model instance.

        Returns:
            String like "ClassName(id=1, name='...')"
        """
        class_name = self.__class__.__name__
        attrs = []

        if hasattr(self, "id") and self.id is not None:
            attrs.append(f"id={self.id}")

        if hasattr(self, "name") and self.name is not None:
            attrs.append(f"name='{self.name}'")

        attrs_str = ", ".join(attrs)
        return f"{class_name}({attrs_str})"

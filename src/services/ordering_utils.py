"""
Shared ordering and hierarchy helpers for tab, group and input services.

Provides the splice-and-renumber logic used by every reorder operation,
sibling append ordering, and cycle detection for group re-parenting.
"""

from typing import Any, Iterable, List, Optional

from src.services.exceptions import ValidationError


def move_item(items: List[Any], from_index: int, to_index: int) -> List[Any]:
    """
    Move the item at from_index so that it ends up at to_index.

    Args:
        items: Items in their current display order
        from_index: Current position of the item to move
        to_index: Desired position after the move

    Returns:
        New list in the updated order (the input list is not modified)

    Raises:
        ValidationError: If either index is outside the list
    """
    size = len(items)
    errors = []
    if not 0 <= from_index < size:
        errors.append(f"from_index {from_index} is out of range (0-{size - 1})")
    if not 0 <= to_index < size:
        errors.append(f"to_index {to_index} is out of range (0-{size - 1})")
    if errors:
        raise ValidationError(errors)

    reordered = list(items)
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return reordered


def renumber(items: Iterable[Any], attribute: str = "sort_order") -> None:
    """Assign 0..n-1 to the ordering attribute, following iteration order."""
    for index, item in enumerate(items):
        setattr(item, attribute, index)


def next_sort_order(siblings: Iterable[Any], attribute: str = "sort_order") -> int:
    """
    Order value for an item appended after its siblings.

    Returns:
        max(sibling order) + 1, or 0 when there are no siblings
    """
    orders = [getattr(sibling, attribute) or 0 for sibling in siblings]
    return max(orders) + 1 if orders else 0


def validate_no_cycle(descendant_ids: Iterable[str], item_id: str, proposed_parent_id: Optional[str]) -> bool:
    """
    Ensure re-parenting won't create a cycle.

    Args:
        descendant_ids: IDs of all descendants of the item being moved
        item_id: ID of the item being moved
        proposed_parent_id: The proposed new parent ID (None = root)

    Returns:
        True if safe (no cycle), False if cycle would be created
    """
    if proposed_parent_id is None:
        return True
    if proposed_parent_id == item_id:
        return False
    return proposed_parent_id not in set(descendant_ids)

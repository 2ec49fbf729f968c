"""
Tab Group Service - nested folder management for dashboard tabs.

Groups form a tree through parent_id. This service owns every operation
that changes the tree: creation, renaming, re-parenting with cycle
prevention, sibling reordering, and removal (which lifts child groups and
tabs instead of deleting them).

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.base import generate_public_id
from src.models.dashboard_tab import DashboardTab
from src.models.tab_group import TabGroup
from src.services.database import session_scope
from src.services.exceptions import (
    CircularReferenceError,
    TabGroupNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.ordering_utils import (
    move_item,
    next_sort_order,
    renumber,
    validate_no_cycle,
)
from src.utils.constants import GROUP_ID_PREFIX, MAX_NAME_LENGTH
from src.utils.validators import trim_name, validate_name_not_empty, validate_string_length

logger = get_service_logger(__name__)


# ============================================================================
# Internal Helpers
# ============================================================================


def _validated_name(name: str) -> str:
    if not validate_name_not_empty(name):
        raise ValidationError(["Group name cannot be empty"])
    name = trim_name(name)
    is_valid, error = validate_string_length(name, MAX_NAME_LENGTH, "Group name")
    if not is_valid:
        raise ValidationError([error])
    return name


def _get_group(sess: Session, group_id: str) -> TabGroup:
    group = sess.query(TabGroup).filter(TabGroup.public_id == group_id).first()
    if group is None:
        raise TabGroupNotFound(group_id)
    return group


def _siblings(sess: Session, parent_id: Optional[str]) -> List[TabGroup]:
    """Groups sharing parent_id, in display order."""
    query = sess.query(TabGroup)
    if parent_id is None:
        query = query.filter(TabGroup.parent_id.is_(None))
    else:
        query = query.filter(TabGroup.parent_id == parent_id)
    return query.order_by(TabGroup.sort_order, TabGroup.id).all()


def _collect_descendants(sess: Session, group_id: str, descendants: List[TabGroup]) -> None:
    """
    Recursively collect all descendants of a group.

    Helper function for get_descendants and would_create_cycle.
    """
    for child in _siblings(sess, group_id):
        descendants.append(child)
        _collect_descendants(sess, child.public_id, descendants)


# ============================================================================
# Queries
# ============================================================================


def list_groups(session: Optional[Session] = None) -> List[TabGroup]:
    """
    List all groups ordered by sort_order.

    Args:
        session: Optional database session

    Returns:
        List of TabGroup objects
    """

    def _impl(sess: Session) -> List[TabGroup]:
        return sess.query(TabGroup).order_by(TabGroup.sort_order, TabGroup.id).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_child_groups(
    parent_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[TabGroup]:
    """
    List the groups directly under parent_id (root level when None).

    Raises:
        TabGroupNotFound: If parent_id doesn't exist
    """

    def _impl(sess: Session) -> List[TabGroup]:
        if parent_id is not None:
            _get_group(sess, parent_id)
        return _siblings(sess, parent_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_group(group_id: str, session: Optional[Session] = None) -> TabGroup:
    """
    Get a group by its public ID.

    Raises:
        TabGroupNotFound: If group doesn't exist
    """

    def _impl(sess: Session) -> TabGroup:
        return _get_group(sess, group_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_ancestors(group_id: str, session: Optional[Session] = None) -> List[TabGroup]:
    """
    Get path from group to root (for breadcrumb display).

    Args:
        group_id: ID of group
        session: Optional database session

    Returns:
        List of ancestors ordered from immediate parent to root

    Raises:
        TabGroupNotFound: If group_id doesn't exist
    """

    def _impl(sess: Session) -> List[TabGroup]:
        group = _get_group(sess, group_id)

        ancestors = []
        seen = {group.public_id}
        parent_id = group.parent_id
        while parent_id is not None and parent_id not in seen:
            parent = sess.query(TabGroup).filter(TabGroup.public_id == parent_id).first()
            if parent is None:
                break
            ancestors.append(parent)
            seen.add(parent.public_id)
            parent_id = parent.parent_id

        return ancestors

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_descendants(group_id: str, session: Optional[Session] = None) -> List[TabGroup]:
    """
    Get all descendants (recursive) of a group.

    Raises:
        TabGroupNotFound: If group_id doesn't exist
    """

    def _impl(sess: Session) -> List[TabGroup]:
        _get_group(sess, group_id)
        descendants = []
        _collect_descendants(sess, group_id, descendants)
        return descendants

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def would_create_cycle(
    group_id: str,
    target_parent_id: Optional[str],
    session: Optional[Session] = None,
) -> bool:
    """
    Check if moving group_id under target_parent_id would create a cycle.

    Args:
        group_id: ID of group being moved
        target_parent_id: Proposed new parent ID (None = root)
        session: Optional database session

    Returns:
        True if cycle would be created, False if safe
    """

    def _impl(sess: Session) -> bool:
        if target_parent_id is None:
            return False
        if target_parent_id == group_id:
            return True
        descendants = []
        _collect_descendants(sess, group_id, descendants)
        return not validate_no_cycle(
            [d.public_id for d in descendants], group_id, target_parent_id
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_group_tree(session: Optional[Session] = None) -> Dict:
    """
    Build the nested group tree with each group's tabs.

    Returns:
        {"groups": [group, ...], "uncategorized": [tab, ...]} where each group
        is its state dict plus "children" (nested groups) and "tabs" (tab
        state dicts), all in display order.
    """

    def _impl(sess: Session) -> Dict:
        groups = sess.query(TabGroup).order_by(TabGroup.sort_order, TabGroup.id).all()
        tabs = sess.query(DashboardTab).order_by(DashboardTab.sort_order, DashboardTab.id).all()

        nodes = {}
        for group in groups:
            node = group.to_state_dict()
            node["children"] = []
            node["tabs"] = []
            nodes[group.public_id] = node

        roots = []
        for group in groups:
            node = nodes[group.public_id]
            if group.parent_id is not None and group.parent_id in nodes:
                nodes[group.parent_id]["children"].append(node)
            else:
                roots.append(node)

        uncategorized = []
        for tab in tabs:
            tab_dict = tab.to_state_dict()
            if tab.group_id is not None and tab.group_id in nodes:
                nodes[tab.group_id]["tabs"].append(tab_dict)
            else:
                uncategorized.append(tab_dict)

        return {"groups": roots, "uncategorized": uncategorized}

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Mutations
# ============================================================================


def add_group(
    name: str,
    parent_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> TabGroup:
    """
    Create a new group at the end of its sibling level.

    Args:
        name: Group display name
        parent_id: Parent group ID (None = root level)
        session: Optional database session

    Returns:
        Created TabGroup instance

    Raises:
        ValidationError: If name is empty
        TabGroupNotFound: If parent_id doesn't exist
    """
    name = _validated_name(name)

    def _impl(sess: Session) -> TabGroup:
        if parent_id is not None:
            _get_group(sess, parent_id)

        group = TabGroup(
            public_id=generate_public_id(GROUP_ID_PREFIX),
            name=name,
            sort_order=next_sort_order(_siblings(sess, parent_id)),
            parent_id=parent_id,
        )
        sess.add(group)
        sess.flush()
        sess.refresh(group)

        log_operation(
            logger,
            operation="add_group",
            outcome="success",
            group_id=group.public_id,
            parent_id=parent_id,
        )
        return group

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def rename_group(
    group_id: str,
    name: str,
    session: Optional[Session] = None,
) -> TabGroup:
    """
    Rename a group.

    Raises:
        TabGroupNotFound: If group doesn't exist
        ValidationError: If name is empty
    """
    name = _validated_name(name)

    def _impl(sess: Session) -> TabGroup:
        group = _get_group(sess, group_id)
        group.name = name
        sess.flush()
        log_operation(logger, operation="rename_group", outcome="success", group_id=group_id)
        return group

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def remove_group(group_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a group without deleting its contents.

    Tabs in the group become Uncategorized, appended after the existing
    uncategorized tabs. Child groups move up to the removed group's parent,
    appended after the existing siblings there. Relative order is kept in
    both cases, and the removed group's former siblings are renumbered.

    Raises:
        TabGroupNotFound: If group doesn't exist
    """

    def _impl(sess: Session) -> None:
        group = _get_group(sess, group_id)
        new_parent_id = group.parent_id

        # Lift tabs to Uncategorized
        uncategorized = (
            sess.query(DashboardTab)
            .filter(DashboardTab.group_id.is_(None))
            .order_by(DashboardTab.sort_order, DashboardTab.id)
            .all()
        )
        group_tabs = (
            sess.query(DashboardTab)
            .filter(DashboardTab.group_id == group_id)
            .order_by(DashboardTab.sort_order, DashboardTab.id)
            .all()
        )
        for tab in group_tabs:
            tab.group_id = None
        renumber(uncategorized + group_tabs)

        # Lift child groups to the removed group's level
        children = _siblings(sess, group_id)
        level = [g for g in _siblings(sess, new_parent_id) if g.public_id != group_id]
        for child in children:
            child.parent_id = new_parent_id
        renumber(level + children)
        sess.flush()

        sess.delete(group)
        sess.flush()

        log_operation(
            logger,
            operation="remove_group",
            outcome="success",
            group_id=group_id,
            lifted_tabs=len(group_tabs),
            lifted_groups=len(children),
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def reorder_groups(
    from_index: int,
    to_index: int,
    parent_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[TabGroup]:
    """
    Move a group within its sibling level and renumber the level 0..n-1.

    Args:
        from_index: Current position among the siblings
        to_index: Target position among the siblings
        parent_id: Parent of the level being reordered (None = root level)
        session: Optional database session

    Returns:
        The sibling groups in their new order

    Raises:
        ValidationError: If an index is out of range
        TabGroupNotFound: If parent_id doesn't exist
    """

    def _impl(sess: Session) -> List[TabGroup]:
        if parent_id is not None:
            _get_group(sess, parent_id)
        siblings = _siblings(sess, parent_id)
        if from_index == to_index and 0 <= from_index < len(siblings):
            return siblings

        reordered = move_item(siblings, from_index, to_index)
        renumber(reordered)
        sess.flush()

        log_operation(
            logger,
            operation="reorder_groups",
            outcome="success",
            level=logging.DEBUG,
            parent_id=parent_id,
            from_index=from_index,
            to_index=to_index,
        )
        return reordered

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def move_group_to_parent(
    group_id: str,
    target_parent_id: Optional[str],
    session: Optional[Session] = None,
) -> TabGroup:
    """
    Re-parent a group with cycle prevention.

    The group is appended after its new siblings; its old sibling level is
    renumbered.

    Args:
        group_id: ID of group to move
        target_parent_id: ID of new parent (None = root level)
        session: Optional database session

    Returns:
        Updated TabGroup

    Raises:
        TabGroupNotFound: If group or target parent not found
        CircularReferenceError: If target is the group itself or a descendant
    """

    def _impl(sess: Session) -> TabGroup:
        group = _get_group(sess, group_id)
        if target_parent_id is not None and target_parent_id != group_id:
            _get_group(sess, target_parent_id)

        if would_create_cycle(group_id, target_parent_id, session=sess):
            log_operation(
                logger,
                operation="move_group_to_parent",
                outcome="circular_reference",
                level=logging.WARNING,
                group_id=group_id,
                target_parent_id=target_parent_id,
            )
            raise CircularReferenceError(group_id, target_parent_id)

        old_parent_id = group.parent_id
        if old_parent_id == target_parent_id:
            return group

        new_siblings = _siblings(sess, target_parent_id)
        group.parent_id = target_parent_id
        group.sort_order = next_sort_order(new_siblings)
        renumber(g for g in _siblings(sess, old_parent_id) if g.public_id != group_id)
        sess.flush()

        log_operation(
            logger,
            operation="move_group_to_parent",
            outcome="success",
            group_id=group_id,
            old_parent_id=old_parent_id,
            target_parent_id=target_parent_id,
        )
        return group

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)

"""
Dashboard Tab Service - CRUD, ordering and grouping for dashboard tabs.

Tabs are addressed by slug. Ordering is kept per group: sort_order is the
position of a tab among the tabs sharing its group_id (Uncategorized tabs
share group_id=None).

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models.base import generate_public_id
from src.models.dashboard_tab import DashboardTab
from src.models.tab_group import TabGroup
from src.models.tab_input import TabInput
from src.services.database import session_scope
from src.services.exceptions import (
    DashboardTabNotFound,
    TabGroupNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.ordering_utils import move_item, next_sort_order, renumber
from src.utils.constants import (
    DUPLICATE_NAME_SUFFIX,
    MAX_ICON_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    TAB_INPUT_ID_PREFIX,
)
from src.utils.validators import (
    slugify,
    trim_name,
    unique_slug,
    validate_link,
    validate_name_not_empty,
    validate_string_length,
)

logger = get_service_logger(__name__)

# Marker for update_tab() fields that were not passed
_UNSET = object()


# ============================================================================
# Internal Helpers
# ============================================================================


def _validated_name(name: str) -> str:
    if not validate_name_not_empty(name):
        raise ValidationError(["Tab name cannot be empty"])
    name = trim_name(name)
    is_valid, error = validate_string_length(name, MAX_NAME_LENGTH, "Tab name")
    if not is_valid:
        raise ValidationError([error])
    return name


def _get_tab(sess: Session, tab_id: str) -> DashboardTab:
    tab = sess.query(DashboardTab).filter(DashboardTab.slug == tab_id).first()
    if tab is None:
        raise DashboardTabNotFound(tab_id)
    return tab


def _ensure_group_exists(sess: Session, group_id: Optional[str]) -> None:
    if group_id is None:
        return
    exists = sess.query(TabGroup.id).filter(TabGroup.public_id == group_id).first()
    if exists is None:
        raise TabGroupNotFound(group_id)


def _group_tabs(sess: Session, group_id: Optional[str]) -> List[DashboardTab]:
    """Tabs sharing group_id, in display order."""
    query = sess.query(DashboardTab)
    if group_id is None:
        query = query.filter(DashboardTab.group_id.is_(None))
    else:
        query = query.filter(DashboardTab.group_id == group_id)
    return query.order_by(DashboardTab.sort_order, DashboardTab.id).all()


def _new_slug(sess: Session, name: str) -> str:
    existing = [row.slug for row in sess.query(DashboardTab.slug).all()]
    return unique_slug(slugify(name), existing, max_length=MAX_SLUG_LENGTH)


# ============================================================================
# Queries
# ============================================================================


def list_tabs(session: Optional[Session] = None) -> List[DashboardTab]:
    """
    List all tabs ordered by their in-group sort_order.

    Args:
        session: Optional database session

    Returns:
        List of DashboardTab objects
    """

    def _impl(sess: Session) -> List[DashboardTab]:
        return sess.query(DashboardTab).order_by(DashboardTab.sort_order, DashboardTab.id).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_tabs_in_group(
    group_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[DashboardTab]:
    """
    List the tabs of one group (Uncategorized when group_id is None).

    Raises:
        TabGroupNotFound: If group_id doesn't exist
    """

    def _impl(sess: Session) -> List[DashboardTab]:
        _ensure_group_exists(sess, group_id)
        return _group_tabs(sess, group_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_tab(tab_id: str, session: Optional[Session] = None) -> DashboardTab:
    """
    Get a tab by slug.

    Raises:
        DashboardTabNotFound: If tab doesn't exist
    """

    def _impl(sess: Session) -> DashboardTab:
        return _get_tab(sess, tab_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Mutations
# ============================================================================


def add_tab(
    name: str,
    group_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> DashboardTab:
    """
    Create a new private tab at the end of its group.

    Args:
        name: Tab display name (e.g., "Sales Overview")
        group_id: Optional group to place the tab in
        session: Optional database session

    Returns:
        Created DashboardTab; its slug is derived from the name and made
        unique ("sales-overview", "sales-overview-1", ...)

    Raises:
        ValidationError: If name is empty
        TabGroupNotFound: If group_id doesn't exist
    """
    name = _validated_name(name)

    def _impl(sess: Session) -> DashboardTab:
        _ensure_group_exists(sess, group_id)

        tab = DashboardTab(
            slug=_new_slug(sess, name),
            name=name,
            is_public=False,
            group_id=group_id,
            sort_order=next_sort_order(_group_tabs(sess, group_id)),
        )
        sess.add(tab)
        sess.flush()
        sess.refresh(tab)

        log_operation(
            logger,
            operation="add_tab",
            outcome="success",
            tab_id=tab.slug,
            group_id=group_id,
        )
        return tab

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def remove_tab(tab_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a tab together with its inputs and renumber its group.

    Raises:
        DashboardTabNotFound: If tab doesn't exist
    """

    def _impl(sess: Session) -> None:
        tab = _get_tab(sess, tab_id)
        group_id = tab.group_id
        input_count = (
            sess.query(TabInput)
            .filter(TabInput.tab_slug == tab_id)
            .delete(synchronize_session=False)
        )

        sess.delete(tab)
        sess.flush()
        renumber(_group_tabs(sess, group_id))
        sess.flush()

        log_operation(
            logger,
            operation="remove_tab",
            outcome="success",
            tab_id=tab_id,
            removed_inputs=input_count,
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def rename_tab(
    tab_id: str,
    name: str,
    session: Optional[Session] = None,
) -> DashboardTab:
    """
    Change a tab's display name. The slug is left unchanged.

    Raises:
        DashboardTabNotFound: If tab doesn't exist
        ValidationError: If name is empty
    """
    name = _validated_name(name)

    def _impl(sess: Session) -> DashboardTab:
        tab = _get_tab(sess, tab_id)
        old_name = tab.name
        tab.name = name
        sess.flush()

        log_operation(
            logger,
            operation="rename_tab",
            outcome="success",
            tab_id=tab_id,
            old_name=old_name,
            new_name=name,
        )
        return tab

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_tab(
    tab_id: str,
    link=_UNSET,
    icon=_UNSET,
    is_public=_UNSET,
    session: Optional[Session] = None,
) -> DashboardTab:
    """
    Partially update a tab's link, icon and visibility.

    Only the arguments that are passed change. Passing None or "" for link
    or icon clears it.

    Args:
        tab_id: Slug of tab to update
        link: External URL (http/https)
        icon: Icon name
        is_public: Whether the tab can be opened through a public link
        session: Optional database session

    Returns:
        Updated DashboardTab

    Raises:
        DashboardTabNotFound: If tab doesn't exist
        ValidationError: If link is not an http(s) URL, icon is too long or
            is_public is not a boolean
    """
    errors = []
    if link is not _UNSET:
        link = link.strip() if link else None
        is_valid, error = validate_link(link)
        if not is_valid:
            errors.append(error)
    if icon is not _UNSET:
        icon = icon.strip() if icon else None
        is_valid, error = validate_string_length(icon, MAX_ICON_LENGTH, "Icon")
        if not is_valid:
            errors.append(error)
    if is_public is not _UNSET and not isinstance(is_public, bool):
        errors.append("is_public must be true or false")
    if errors:
        raise ValidationError(errors)

    def _impl(sess: Session) -> DashboardTab:
        tab = _get_tab(sess, tab_id)
        changed = []
        if link is not _UNSET and link != tab.link:
            tab.link = link
            changed.append("link")
        if icon is not _UNSET and icon != tab.icon:
            tab.icon = icon
            changed.append("icon")
        if is_public is not _UNSET and is_public != tab.is_public:
            tab.is_public = is_public
            changed.append("is_public")
        sess.flush()

        log_operation(
            logger,
            operation="update_tab",
            outcome="success" if changed else "unchanged",
            level=logging.INFO if changed else logging.DEBUG,
            tab_id=tab_id,
            changed_fields=changed,
        )
        return tab

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def reorder_tabs(
    from_index: int,
    to_index: int,
    group_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[DashboardTab]:
    """
    Move a tab within its group and renumber the group 0..n-1.

    Args:
        from_index: Current position among the group's tabs
        to_index: Target position among the group's tabs
        group_id: Group being reordered (None = Uncategorized)
        session: Optional database session

    Returns:
        The group's tabs in their new order

    Raises:
        ValidationError: If an index is out of range
        TabGroupNotFound: If group_id doesn't exist
    """

    def _impl(sess: Session) -> List[DashboardTab]:
        _ensure_group_exists(sess, group_id)
        tabs = _group_tabs(sess, group_id)
        if from_index == to_index and 0 <= from_index < len(tabs):
            return tabs

        reordered = move_item(tabs, from_index, to_index)
        renumber(reordered)
        sess.flush()

        log_operation(
            logger,
            operation="reorder_tabs",
            outcome="success",
            level=logging.DEBUG,
            group_id=group_id,
            from_index=from_index,
            to_index=to_index,
        )
        return reordered

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def move_tab_to_group(
    tab_id: str,
    group_id: Optional[str],
    session: Optional[Session] = None,
) -> DashboardTab:
    """
    Move a tab into another group (None = Uncategorized).

    The tab is appended after the target group's tabs and the source group
    is renumbered. Moving a tab to the group it is already in is a no-op.

    Raises:
        DashboardTabNotFound: If tab doesn't exist
        TabGroupNotFound: If group_id doesn't exist
    """

    def _impl(sess: Session) -> DashboardTab:
        tab = _get_tab(sess, tab_id)
        _ensure_group_exists(sess, group_id)

        source_group_id = tab.group_id
        if source_group_id == group_id:
            return tab

        target_tabs = _group_tabs(sess, group_id)
        tab.group_id = group_id
        tab.sort_order = next_sort_order(target_tabs)
        sess.flush()
        renumber(_group_tabs(sess, source_group_id))
        sess.flush()

        log_operation(
            logger,
            operation="move_tab_to_group",
            outcome="success",
            tab_id=tab_id,
            source_group_id=source_group_id,
            group_id=group_id,
        )
        return tab

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def duplicate_tab(
    tab_id: str,
    desired_name: Optional[str] = None,
    session: Optional[Session] = None,
) -> DashboardTab:
    """
    Copy a tab and its inputs.

    Args:
        tab_id: Slug of the source tab
        desired_name: Name for the copy; defaults to "<source name> (Copy)"
        session: Optional database session

    Returns:
        The new DashboardTab: private, in the source's group, appended at
        the end of that group. Inputs are copied with fresh IDs.

    Raises:
        DashboardTabNotFound: If the source tab doesn't exist
    """

    def _impl(sess: Session) -> DashboardTab:
        source = _get_tab(sess, tab_id)

        if desired_name and desired_name.strip():
            name = _validated_name(desired_name)
        else:
            name = f"{source.name}{DUPLICATE_NAME_SUFFIX}"[:MAX_NAME_LENGTH]

        copy = DashboardTab(
            slug=_new_slug(sess, name),
            name=name,
            is_public=False,
            group_id=source.group_id,
            sort_order=next_sort_order(_group_tabs(sess, source.group_id)),
        )
        sess.add(copy)
        sess.flush()

        source_inputs = (
            sess.query(TabInput)
            .filter(TabInput.tab_slug == tab_id)
            .order_by(TabInput.sort_order, TabInput.id)
            .all()
        )
        for source_input in source_inputs:
            sess.add(
                TabInput(
                    public_id=generate_public_id(TAB_INPUT_ID_PREFIX, random_length=7),
                    tab_slug=copy.slug,
                    key=source_input.key,
                    label=source_input.label,
                    input_type=source_input.input_type,
                    value=source_input.value,
                    default_value=source_input.default_value,
                    placeholder=source_input.placeholder,
                    description=source_input.description,
                    options=[dict(o) for o in source_input.options] if source_input.options else None,
                    sort_order=source_input.sort_order,
                )
            )
        sess.flush()
        sess.refresh(copy)

        log_operation(
            logger,
            operation="duplicate_tab",
            outcome="success",
            tab_id=copy.slug,
            source_tab_id=tab_id,
            copied_inputs=len(source_inputs),
        )
        return copy

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)

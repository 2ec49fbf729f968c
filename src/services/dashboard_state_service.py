"""
Dashboard State Service - whole-state load and save.

The dashboard client loads and saves its configuration as two documents:
the tabs state ({"tabs", "groups"}) and one inputs state per tab
({"tab_id", "inputs"}). Saving a document replaces what is stored,
reconciled row by row on the public IDs so that unchanged rows (and the
inputs hanging off unchanged tabs) survive.

Payloads use the state-dict shapes produced by the models' to_state_dict():
    tab:   {"id", "name", "created_at", "is_public", "group_id", "link", "icon"}
    group: {"id", "name", "order", "parent_id"}
    input: {"id", "key", "label", "type", "value", "default_value",
            "placeholder", "description", "options", "created_at"}

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.dashboard_tab import DashboardTab
from src.models.tab_group import TabGroup
from src.models.tab_input import TabInput
from src.services.database import session_scope
from src.services.exceptions import (
    CircularReferenceError,
    DashboardTabNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.tab_input_service import new_input_id, validate_input_fields
from src.utils.constants import (
    DEFAULT_INPUT_LABEL,
    DEFAULT_INPUT_TYPE,
    MAX_ICON_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
)
from src.utils.datetime_utils import parse_iso, utc_now
from src.utils.validators import (
    trim_name,
    unique_input_key,
    validate_link,
    validate_name_not_empty,
    validate_string_length,
)

logger = get_service_logger(__name__)


# ============================================================================
# Payload Validation
# ============================================================================


def _parse_timestamp(value: Any, label: str, errors: List[str]):
    if value in (None, ""):
        return None
    try:
        return parse_iso(value)
    except (AttributeError, TypeError, ValueError):
        errors.append(f"{label}: invalid timestamp '{value}'")
        return None


def _check_strings(payload: Dict[str, Any], fields, label: str, errors: List[str]) -> bool:
    """Append an error for each field that is set but is not a string."""
    valid = True
    for field in fields:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            errors.append(f"{label}: {field} must be a string")
            valid = False
    return valid


def _validate_groups(groups: List[Dict[str, Any]]) -> List[str]:
    errors = []
    seen = set()
    for index, group in enumerate(groups):
        label = f"groups[{index}]"
        if not isinstance(group, dict):
            errors.append(f"{label}: must be an object")
            continue
        group_id = group.get("id")
        if not isinstance(group_id, str) or not group_id.strip():
            errors.append(f"{label}: id is required")
        elif group_id in seen:
            errors.append(f"{label}: duplicate group id '{group_id}'")
        else:
            seen.add(group_id)
        if _check_strings(group, ("name",), label, errors) and not validate_name_not_empty(
            group.get("name")
        ):
            errors.append(f"{label}: name is required")
        order = group.get("order")
        if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
            errors.append(f"{label}: order must be an integer")

    for index, group in enumerate(groups):
        if not isinstance(group, dict):
            continue
        label = f"groups[{index}]"
        if not _check_strings(group, ("parent_id",), label, errors):
            continue
        parent_id = group.get("parent_id")
        if parent_id is not None and parent_id not in seen:
            errors.append(f"{label}: unknown parent group '{parent_id}'")
    return errors


def _find_cycle(groups: List[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """Return the first group whose parent chain loops back on itself."""
    parents = {group["id"]: group.get("parent_id") for group in groups}
    for group_id in parents:
        visited = {group_id}
        parent_id = parents.get(group_id)
        while parent_id is not None:
            if parent_id in visited:
                return {"group_id": group_id, "parent_id": parents[group_id]}
            visited.add(parent_id)
            parent_id = parents.get(parent_id)
    return None


def _validate_tabs(tabs: List[Dict[str, Any]], group_ids: set) -> List[str]:
    errors = []
    seen = set()
    for index, tab in enumerate(tabs):
        label = f"tabs[{index}]"
        if not isinstance(tab, dict):
            errors.append(f"{label}: must be an object")
            continue
        tab_id = tab.get("id")
        if not isinstance(tab_id, str) or not tab_id.strip():
            errors.append(f"{label}: id is required")
        elif len(tab_id) > MAX_SLUG_LENGTH:
            errors.append(f"{label}: id must be {MAX_SLUG_LENGTH} characters or less")
        elif tab_id in seen:
            errors.append(f"{label}: duplicate tab id '{tab_id}'")
        else:
            seen.add(tab_id)

        if _check_strings(tab, ("name",), label, errors):
            name = tab.get("name")
            if not validate_name_not_empty(name):
                errors.append(f"{label}: name is required")
            else:
                is_valid, error = validate_string_length(trim_name(name), MAX_NAME_LENGTH, label)
                if not is_valid:
                    errors.append(error)
        _check_strings(tab, ("group_id", "link", "icon"), label, errors)
        group_id = tab.get("group_id")
        if isinstance(group_id, str) and group_id not in group_ids:
            errors.append(f"{label}: unknown group '{group_id}'")
        if isinstance(tab.get("link"), str):
            is_valid, error = validate_link(tab["link"])
            if not is_valid:
                errors.append(f"{label}: {error}")
        is_valid, error = validate_string_length(tab.get("icon"), MAX_ICON_LENGTH, "Icon")
        if not is_valid:
            errors.append(f"{label}: {error}")
        is_public = tab.get("is_public")
        if is_public is not None and not isinstance(is_public, bool):
            errors.append(f"{label}: is_public must be a boolean")
        _parse_timestamp(tab.get("created_at"), label, errors)
    return errors


# ============================================================================
# Tabs State
# ============================================================================


def get_tabs_state(session: Optional[Session] = None) -> Dict[str, List[Dict]]:
    """
    Load the tabs document.

    Returns:
        {"tabs": [...], "groups": [...]} with both lists in display order
    """

    def _impl(sess: Session) -> Dict[str, List[Dict]]:
        tabs = sess.query(DashboardTab).order_by(DashboardTab.sort_order, DashboardTab.id).all()
        groups = sess.query(TabGroup).order_by(TabGroup.sort_order, TabGroup.id).all()
        return {
            "tabs": [tab.to_state_dict() for tab in tabs],
            "groups": [group.to_state_dict() for group in groups],
        }

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def save_tabs_state(
    tabs: List[Dict[str, Any]],
    groups: Optional[List[Dict[str, Any]]] = None,
    session: Optional[Session] = None,
) -> Dict[str, int]:
    """
    Replace the stored tabs document.

    Rows are reconciled by ID: tabs and groups missing from the payload are
    deleted (a deleted tab takes its inputs with it), new ones are inserted
    and existing ones updated. A tab's order is its position among the
    payload tabs of the same group. A group without an explicit order gets
    its position among its payload siblings.

    Args:
        tabs: Tab state dicts in display order
        groups: Group state dicts; None keeps the stored groups unchanged
        session: Optional database session

    Returns:
        Counts of inserted/updated/deleted tabs and groups

    Raises:
        ValidationError: On malformed entries, duplicate IDs or unknown references
        CircularReferenceError: If the groups' parent links form a cycle
    """
    if not isinstance(tabs, list):
        raise ValidationError(["tabs must be an array"])
    if groups is not None and not isinstance(groups, list):
        raise ValidationError(["groups must be an array"])

    def _impl(sess: Session) -> Dict[str, int]:
        group_payload = groups
        if group_payload is None:
            group_payload = [
                group.to_state_dict()
                for group in sess.query(TabGroup).order_by(TabGroup.sort_order, TabGroup.id)
            ]

        errors = _validate_groups(group_payload)
        group_ids = {
            g["id"] for g in group_payload if isinstance(g, dict) and isinstance(g.get("id"), str)
        }
        errors.extend(_validate_tabs(tabs, group_ids))
        if errors:
            log_operation(
                logger,
                operation="save_tabs_state",
                outcome="validation_failed",
                error_count=len(errors),
            )
            raise ValidationError(errors)

        cycle = _find_cycle(group_payload)
        if cycle is not None:
            raise CircularReferenceError(cycle["group_id"], cycle["parent_id"])

        counts = _reconcile_groups(sess, group_payload)
        counts.update(_reconcile_tabs(sess, tabs))

        log_operation(logger, operation="save_tabs_state", outcome="success", **counts)
        return counts

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def _reconcile_groups(sess: Session, groups: List[Dict[str, Any]]) -> Dict[str, int]:
    existing = {g.public_id: g for g in sess.query(TabGroup).all()}
    wanted = {g["id"] for g in groups}

    # Detach everything that references a group about to be deleted
    doomed = [public_id for public_id in existing if public_id not in wanted]
    if doomed:
        sess.query(DashboardTab).filter(DashboardTab.group_id.in_(doomed)).update(
            {DashboardTab.group_id: None}, synchronize_session="fetch"
        )
        sess.query(TabGroup).filter(TabGroup.parent_id.in_(doomed)).update(
            {TabGroup.parent_id: None}, synchronize_session="fetch"
        )
        for public_id in doomed:
            sess.delete(existing[public_id])
        sess.flush()

    sibling_positions = defaultdict(int)
    inserted = updated = 0
    rows = {}
    for payload in groups:
        parent_id = payload.get("parent_id")
        position = sibling_positions[parent_id]
        sibling_positions[parent_id] += 1
        order = payload.get("order")

        group = existing.get(payload["id"])
        if group is None:
            group = TabGroup(public_id=payload["id"])
            sess.add(group)
            inserted += 1
        else:
            updated += 1
        group.name = trim_name(payload["name"])[:MAX_NAME_LENGTH]
        group.sort_order = order if order is not None else position
        # Parents are linked in a second pass once every row exists
        group.parent_id = None
        rows[payload["id"]] = group
    sess.flush()

    for payload in groups:
        rows[payload["id"]].parent_id = payload.get("parent_id")
    sess.flush()

    return {
        "groups_inserted": inserted,
        "groups_updated": updated,
        "groups_deleted": len(doomed),
    }


def _reconcile_tabs(sess: Session, tabs: List[Dict[str, Any]]) -> Dict[str, int]:
    existing = {t.slug: t for t in sess.query(DashboardTab).all()}
    wanted = {t["id"] for t in tabs}

    doomed = [slug for slug in existing if slug not in wanted]
    if doomed:
        sess.query(TabInput).filter(TabInput.tab_slug.in_(doomed)).delete(
            synchronize_session=False
        )
        for slug in doomed:
            sess.delete(existing[slug])
        sess.flush()

    group_positions = defaultdict(int)
    inserted = updated = 0
    for payload in tabs:
        group_id = payload.get("group_id")
        position = group_positions[group_id]
        group_positions[group_id] += 1

        tab = existing.get(payload["id"])
        if tab is None:
            tab = DashboardTab(slug=payload["id"])
            sess.add(tab)
            inserted += 1
        else:
            updated += 1
        tab.name = trim_name(payload["name"])
        tab.is_public = bool(payload.get("is_public", False))
        tab.group_id = group_id
        tab.link = payload.get("link") or None
        tab.icon = payload.get("icon") or None
        tab.sort_order = position
        created_at = parse_iso(payload.get("created_at"))
        if created_at is not None:
            tab.created_at = created_at
    sess.flush()

    return {
        "tabs_inserted": inserted,
        "tabs_updated": updated,
        "tabs_deleted": len(doomed),
    }


# ============================================================================
# Tab Inputs State
# ============================================================================


def get_tab_inputs_state(tab_id: str, session: Optional[Session] = None) -> Dict[str, Any]:
    """
    Load the inputs document of one tab.

    An unknown tab yields an empty input list.

    Returns:
        {"tab_id": tab_id, "inputs": [...]} with inputs in display order
    """

    def _impl(sess: Session) -> Dict[str, Any]:
        inputs = (
            sess.query(TabInput)
            .filter(TabInput.tab_slug == tab_id)
            .order_by(TabInput.sort_order, TabInput.id)
            .all()
        )
        return {"tab_id": tab_id, "inputs": [i.to_state_dict() for i in inputs]}

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


_INPUT_STRING_FIELDS = (
    "id",
    "key",
    "label",
    "type",
    "value",
    "default_value",
    "placeholder",
    "description",
)


def save_tab_inputs_state(
    tab_id: str,
    inputs: List[Dict[str, Any]],
    session: Optional[Session] = None,
) -> Dict[str, int]:
    """
    Replace the inputs of one tab.

    Each input is stamped with the tab, order = its index, updated_at = now;
    created_at is kept from the payload, else from the stored row, else now.
    Keys are sanitised and de-duplicated in payload order. Inputs without an
    ID get a fresh one.

    Args:
        tab_id: Slug of the owning tab
        inputs: Input state dicts in display order
        session: Optional database session

    Returns:
        Counts of inserted/updated/deleted inputs

    Raises:
        DashboardTabNotFound: If the tab doesn't exist
        ValidationError: On malformed entries or duplicate IDs
    """
    if not tab_id:
        raise ValidationError(["tabId is required"])
    if not isinstance(inputs, list):
        raise ValidationError(["inputs must be an array"])

    errors = []
    seen_ids = set()
    for index, payload in enumerate(inputs):
        label = f"inputs[{index}]"
        if not isinstance(payload, dict):
            errors.append(f"{label}: must be an object")
            continue
        if not _check_strings(payload, _INPUT_STRING_FIELDS, label, errors):
            continue
        input_id = payload.get("id")
        if input_id:
            if input_id in seen_ids:
                errors.append(f"{label}: duplicate input id '{input_id}'")
            seen_ids.add(input_id)
        field_errors = validate_input_fields(
            payload.get("type") or DEFAULT_INPUT_TYPE,
            payload.get("label"),
            payload.get("options"),
            payload.get("value"),
            payload.get("default_value"),
        )
        errors.extend(f"{label}: {error}" for error in field_errors)
        _parse_timestamp(payload.get("created_at"), label, errors)
    if errors:
        raise ValidationError(errors)

    def _impl(sess: Session) -> Dict[str, int]:
        exists = sess.query(DashboardTab.id).filter(DashboardTab.slug == tab_id).first()
        if exists is None:
            raise DashboardTabNotFound(tab_id)

        existing = {
            i.public_id: i
            for i in sess.query(TabInput).filter(TabInput.tab_slug == tab_id).all()
        }
        other_tab_ids = {
            row.public_id
            for row in sess.query(TabInput.public_id).filter(
                TabInput.public_id.in_(seen_ids), TabInput.tab_slug != tab_id
            )
        }

        doomed = [public_id for public_id in existing if public_id not in seen_ids]
        for public_id in doomed:
            sess.delete(existing[public_id])
        sess.flush()

        now = utc_now()
        used_keys = []
        inserted = updated = 0
        for index, payload in enumerate(inputs):
            input_id = payload.get("id")
            row = existing.get(input_id) if input_id else None
            if row is None:
                if not input_id or input_id in other_tab_ids:
                    input_id = new_input_id()
                row = TabInput(public_id=input_id, tab_slug=tab_id)
                sess.add(row)
                inserted += 1
            else:
                updated += 1

            key = unique_input_key(payload.get("key") or f"input_{index + 1}", used_keys)
            used_keys.append(key)

            row.key = key
            row.label = payload.get("label") or DEFAULT_INPUT_LABEL
            row.input_type = payload.get("type") or DEFAULT_INPUT_TYPE
            row.value = payload.get("value") if payload.get("value") is not None else ""
            row.default_value = payload.get("default_value") or ""
            row.placeholder = payload.get("placeholder")
            row.description = payload.get("description")
            row.options = payload.get("options")
            row.sort_order = index
            row.created_at = parse_iso(payload.get("created_at")) or row.created_at or now
            row.updated_at = now
        sess.flush()

        counts = {
            "inputs_inserted": inserted,
            "inputs_updated": updated,
            "inputs_deleted": len(doomed),
        }
        log_operation(
            logger,
            operation="save_tab_inputs_state",
            outcome="success",
            tab_id=tab_id,
            **counts,
        )
        return counts

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)

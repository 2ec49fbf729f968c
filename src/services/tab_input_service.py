"""
Tab Input Service - user-defined parameters attached to a dashboard tab.

Each input has a key that dashboard queries refer to. Keys are sanitised
(lowercase, [a-z0-9_], at most 50 characters) and kept unique within a tab
by appending _1, _2, ... on collision.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.base import generate_public_id
from src.models.dashboard_tab import DashboardTab
from src.models.tab_input import TabInput
from src.services.database import session_scope
from src.services.exceptions import (
    DashboardTabNotFound,
    TabInputNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.ordering_utils import move_item, renumber
from src.utils.constants import (
    DEFAULT_INPUT_LABEL,
    DEFAULT_INPUT_TYPE,
    MAX_LABEL_LENGTH,
    TAB_INPUT_ID_PREFIX,
    UPDATABLE_INPUT_FIELDS,
)
from src.utils.datetime_utils import utc_now
from src.utils.validators import (
    unique_input_key,
    validate_input_type,
    validate_input_value,
    validate_options,
    validate_string_length,
)

logger = get_service_logger(__name__)

# Column names that differ from the public field names
_FIELD_COLUMNS = {"type": "input_type"}


# ============================================================================
# Internal Helpers
# ============================================================================


def new_input_id() -> str:
    """Generate a public ID for a tab input (e.g., "tab_input_1718000000000_k3j9x0a")."""
    return generate_public_id(TAB_INPUT_ID_PREFIX, random_length=7)


def _ensure_tab_exists(sess: Session, tab_id: str) -> None:
    exists = sess.query(DashboardTab.id).filter(DashboardTab.slug == tab_id).first()
    if exists is None:
        raise DashboardTabNotFound(tab_id)


def _get_input(sess: Session, input_id: str) -> TabInput:
    tab_input = sess.query(TabInput).filter(TabInput.public_id == input_id).first()
    if tab_input is None:
        raise TabInputNotFound(input_id)
    return tab_input


def _tab_inputs(sess: Session, tab_id: str) -> List[TabInput]:
    """Inputs of a tab, in display order."""
    return (
        sess.query(TabInput)
        .filter(TabInput.tab_slug == tab_id)
        .order_by(TabInput.sort_order, TabInput.id)
        .all()
    )


def validate_input_fields(
    input_type: str,
    label: Optional[str] = None,
    options: Optional[list] = None,
    value: Optional[str] = None,
    default_value: Optional[str] = None,
) -> List[str]:
    """
    Collect validation errors for a tab input definition.

    Returns:
        List of error messages (empty when valid)
    """
    errors = []

    is_valid, error = validate_input_type(input_type)
    if not is_valid:
        errors.append(error)
        return errors

    is_valid, error = validate_string_length(label, MAX_LABEL_LENGTH, "Label")
    if not is_valid:
        errors.append(error)

    option_errors = validate_options(options)
    errors.extend(option_errors)
    if option_errors:
        return errors

    for field_name, field_value in (("Value", value), ("Default value", default_value)):
        is_valid, error = validate_input_value(field_value, input_type, options)
        if not is_valid:
            errors.append(error.replace("Value:", f"{field_name}:", 1))

    return errors


# ============================================================================
# Queries
# ============================================================================


def list_inputs(tab_id: str, session: Optional[Session] = None) -> List[TabInput]:
    """
    List a tab's inputs ordered by sort_order.

    Args:
        tab_id: Slug of the owning tab
        session: Optional database session

    Returns:
        List of TabInput objects (empty for a tab without inputs)
    """

    def _impl(sess: Session) -> List[TabInput]:
        return _tab_inputs(sess, tab_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_input(input_id: str, session: Optional[Session] = None) -> TabInput:
    """
    Get a tab input by its public ID.

    Raises:
        TabInputNotFound: If input doesn't exist
    """

    def _impl(sess: Session) -> TabInput:
        return _get_input(sess, input_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def ensure_unique_key(
    tab_id: str,
    desired_key: str,
    exclude_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> str:
    """
    Sanitise a key and make it unique among the tab's inputs.

    Args:
        tab_id: Slug of the owning tab
        desired_key: Raw key proposed by the caller
        exclude_id: Input to ignore (the input being renamed)
        session: Optional database session

    Returns:
        Key that no other input of the tab uses
    """

    def _impl(sess: Session) -> str:
        existing = [
            tab_input.key
            for tab_input in _tab_inputs(sess, tab_id)
            if tab_input.public_id != exclude_id
        ]
        return unique_input_key(desired_key, existing)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Mutations
# ============================================================================


def add_input(
    tab_id: str,
    key: Optional[str] = None,
    label: Optional[str] = None,
    type: Optional[str] = None,
    value: Optional[str] = None,
    default_value: Optional[str] = None,
    placeholder: Optional[str] = None,
    description: Optional[str] = None,
    options: Optional[List[Dict[str, str]]] = None,
    session: Optional[Session] = None,
) -> TabInput:
    """
    Append a new input to a tab.

    Args:
        tab_id: Slug of the owning tab
        key: Desired key; defaults to "input_<n+1>"; sanitised and made unique
        label: Display label; defaults to DEFAULT_INPUT_LABEL
        type: "text" (default), "number" or "date"
        value: Initial value; defaults to default_value, then ""
        default_value: Default value; defaults to ""
        placeholder: Optional placeholder text
        description: Optional help text
        options: Optional list of {"label", "value"} choices
        session: Optional database session

    Returns:
        Created TabInput

    Raises:
        DashboardTabNotFound: If the tab doesn't exist
        ValidationError: If type, options or values are invalid
    """
    input_type = type or DEFAULT_INPUT_TYPE
    default_value = default_value if default_value is not None else ""
    value = value if value is not None else default_value

    errors = validate_input_fields(input_type, label, options, value, default_value)
    if errors:
        raise ValidationError(errors)

    def _impl(sess: Session) -> TabInput:
        _ensure_tab_exists(sess, tab_id)
        existing = _tab_inputs(sess, tab_id)

        now = utc_now()
        tab_input = TabInput(
            public_id=new_input_id(),
            tab_slug=tab_id,
            key=unique_input_key(
                key or f"input_{len(existing) + 1}",
                [i.key for i in existing],
            ),
            label=label or DEFAULT_INPUT_LABEL,
            input_type=input_type,
            value=value,
            default_value=default_value,
            placeholder=placeholder,
            description=description,
            options=options,
            sort_order=len(existing),
            created_at=now,
            updated_at=now,
        )
        sess.add(tab_input)
        sess.flush()
        sess.refresh(tab_input)

        log_operation(
            logger,
            operation="add_input",
            outcome="success",
            tab_id=tab_id,
            input_id=tab_input.public_id,
            key=tab_input.key,
        )
        return tab_input

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_input(
    input_id: str,
    updates: Dict[str, Any],
    session: Optional[Session] = None,
) -> TabInput:
    """
    Partially update a tab input.

    A changed key is sanitised and made unique within the tab, excluding
    the input itself. updated_at is refreshed.

    Args:
        input_id: Public ID of the input
        updates: Mapping of field name to new value. Allowed fields: key,
            label, type, value, default_value, placeholder, description, options
        session: Optional database session

    Returns:
        Updated TabInput

    Raises:
        TabInputNotFound: If input doesn't exist
        ValidationError: If a field is unknown or a value is invalid
    """
    unknown = sorted(set(updates) - set(UPDATABLE_INPUT_FIELDS))
    if unknown:
        raise ValidationError([f"Unknown tab input field: {field}" for field in unknown])

    def _impl(sess: Session) -> TabInput:
        tab_input = _get_input(sess, input_id)

        merged = {
            "type": updates.get("type", tab_input.input_type),
            "label": updates.get("label", tab_input.label),
            "options": updates.get("options", tab_input.options),
            "value": updates.get("value", tab_input.value),
            "default_value": updates.get("default_value", tab_input.default_value),
        }
        errors = validate_input_fields(
            merged["type"],
            merged["label"],
            merged["options"],
            merged["value"],
            merged["default_value"],
        )
        if errors:
            raise ValidationError(errors)

        for field, new_value in updates.items():
            if field == "key":
                if new_value and new_value != tab_input.key:
                    new_value = ensure_unique_key(
                        tab_input.tab_slug, new_value, exclude_id=input_id, session=sess
                    )
                else:
                    continue
            if field == "label" and not new_value:
                new_value = DEFAULT_INPUT_LABEL
            setattr(tab_input, _FIELD_COLUMNS.get(field, field), new_value)

        tab_input.updated_at = utc_now()
        sess.flush()

        log_operation(
            logger,
            operation="update_input",
            outcome="success",
            input_id=input_id,
            changed_fields=sorted(updates),
        )
        return tab_input

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def set_input_value(
    input_id: str,
    value: Optional[str],
    session: Optional[Session] = None,
) -> TabInput:
    """
    Set the current value of a tab input.

    Raises:
        TabInputNotFound: If input doesn't exist
        ValidationError: If value doesn't match the input's type or options
    """

    def _impl(sess: Session) -> TabInput:
        tab_input = _get_input(sess, input_id)
        new_value = value if value is not None else ""

        is_valid, error = validate_input_value(new_value, tab_input.input_type, tab_input.options)
        if not is_valid:
            log_operation(
                logger,
                operation="set_input_value",
                outcome="validation_failed",
                level=logging.DEBUG,
                input_id=input_id,
                error=error,
            )
            raise ValidationError([error])

        tab_input.value = new_value
        tab_input.updated_at = utc_now()
        sess.flush()

        log_operation(
            logger,
            operation="set_input_value",
            outcome="success",
            level=logging.DEBUG,
            input_id=input_id,
        )
        return tab_input

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def remove_input(input_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a tab input and renumber the remaining inputs 0..n-1.

    Raises:
        TabInputNotFound: If input doesn't exist
    """

    def _impl(sess: Session) -> None:
        tab_input = _get_input(sess, input_id)
        tab_id = tab_input.tab_slug

        sess.delete(tab_input)
        sess.flush()
        renumber(_tab_inputs(sess, tab_id))
        sess.flush()

        log_operation(
            logger,
            operation="remove_input",
            outcome="success",
            tab_id=tab_id,
            input_id=input_id,
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def reorder_inputs(
    tab_id: str,
    from_index: int,
    to_index: int,
    session: Optional[Session] = None,
) -> List[TabInput]:
    """
    Move an input within its tab and renumber the tab's inputs 0..n-1.

    Returns:
        The tab's inputs in their new order

    Raises:
        DashboardTabNotFound: If the tab doesn't exist
        ValidationError: If an index is out of range
    """

    def _impl(sess: Session) -> List[TabInput]:
        _ensure_tab_exists(sess, tab_id)
        inputs = _tab_inputs(sess, tab_id)
        if from_index == to_index and 0 <= from_index < len(inputs):
            return inputs

        reordered = move_item(inputs, from_index, to_index)
        renumber(reordered)
        sess.flush()

        log_operation(
            logger,
            operation="reorder_inputs",
            outcome="success",
            level=logging.DEBUG,
            tab_id=tab_id,
            from_index=from_index,
            to_index=to_index,
        )
        return reordered

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)

"""
Input validation and normalisation functions for the Dashboard Tabs application.

This module provides:
- Tab slug generation (slugify, unique_slug)
- Tab input key sanitisation (sanitize_input_key, unique_input_key)
- Name and link validation
- Tab input value validation by input type
"""

import math
import re
import time
from datetime import date
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from src.models.enums import TabInputType

from .constants import (
    DEFAULT_INPUT_KEY,
    ERROR_INVALID_DATE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_OPTION,
    ERROR_INVALID_URL,
    MAX_INPUT_KEY_LENGTH,
    TAB_INPUT_TYPES,
)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ============================================================================
# Slugs and Keys
# ============================================================================


def slugify(name: str) -> str:
    """
    Convert a tab name to a URL-friendly slug.

    Args:
        name: Display name to convert

    Returns:
        Lowercase slug with hyphens (e.g., "Sales Overview" -> "sales-overview").
        Names with no usable characters fall back to "tab-<epoch ms>".
    """
    slug = (name or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    return slug or f"tab-{int(time.time() * 1000)}"


def unique_slug(base_slug: str, existing: Iterable[str], max_length: Optional[int] = None) -> str:
    """
    Make a slug unique by appending a numeric suffix.

    Args:
        base_slug: Slug produced by slugify()
        existing: Slugs already in use
        max_length: Optional limit for the result; the base is shortened so
            that base plus suffix fits

    Returns:
        base_slug if free, otherwise base_slug-1, base_slug-2, ...
    """
    taken = set(existing)
    if max_length is not None:
        base_slug = base_slug[:max_length]
    candidate = base_slug
    counter = 1
    while candidate in taken:
        suffix = f"-{counter}"
        base = base_slug
        if max_length is not None:
            base = base_slug[: max_length - len(suffix)]
        candidate = f"{base}{suffix}"
        counter += 1
    return candidate


def sanitize_input_key(key: str) -> str:
    """
    Normalise a tab input key.

    Lowercases, turns whitespace runs into underscores, drops everything
    outside [a-z0-9_] and truncates to MAX_INPUT_KEY_LENGTH.

    Example:
        >>> sanitize_input_key("Start Date!")
        'start_date'
    """
    sanitized = key.lower() if isinstance(key, str) else ""
    sanitized = re.sub(r"\s+", "_", sanitized)
    sanitized = re.sub(r"[^a-z0-9_]", "", sanitized)
    return sanitized[:MAX_INPUT_KEY_LENGTH]


def unique_input_key(desired_key: str, existing: Iterable[str]) -> str:
    """
    Sanitise a key and make it unique among existing keys.

    Args:
        desired_key: Raw key proposed by the caller
        existing: Keys already used by other inputs of the same tab

    Returns:
        Sanitised key, suffixed with _1, _2, ... when already taken
    """
    candidate = sanitize_input_key(desired_key) or DEFAULT_INPUT_KEY
    taken = set(existing)
    unique = candidate
    suffix = 1
    while unique in taken:
        unique = f"{candidate}_{suffix}"
        suffix += 1
    return unique


# ============================================================================
# Names and Links
# ============================================================================


def trim_name(name: Optional[str]) -> str:
    """Trim leading/trailing whitespace from name."""
    return name.strip() if isinstance(name, str) else ""


def validate_name_not_empty(name: Optional[str]) -> bool:
    """
    Validate that name is not empty or whitespace-only.

    Returns:
        True if name is valid (not empty after trimming), False otherwise
    """
    return isinstance(name, str) and bool(name.strip())


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, str) and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_link(link: Optional[str]) -> Tuple[bool, str]:
    """
    Validate an external tab link.

    Empty links are valid (they clear the link).

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not link:
        return True, ""
    if not isinstance(link, str):
        return False, "Link: must be a string"
    parsed = urlparse(link.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False, f"Link: {ERROR_INVALID_URL}"
    return True, ""


# ============================================================================
# Tab Input Values
# ============================================================================


def validate_input_type(input_type: Optional[str]) -> Tuple[bool, str]:
    """Validate that input_type is one of TAB_INPUT_TYPES."""
    if input_type not in TAB_INPUT_TYPES:
        allowed = ", ".join(TAB_INPUT_TYPES)
        return False, f"Type: must be one of {allowed}, got '{input_type}'"
    return True, ""


def validate_options(options) -> List[str]:
    """
    Validate enumerated choices for a tab input.

    Args:
        options: None or a list of {"label": str, "value": str} dicts

    Returns:
        List of error messages (empty when valid)
    """
    if options is None:
        return []
    if not isinstance(options, list):
        return ["Options: must be a list"]

    errors = []
    seen_values = set()
    for index, option in enumerate(options):
        if not isinstance(option, dict):
            errors.append(f"Options[{index}]: must be an object with label and value")
            continue
        label = option.get("label")
        value = option.get("value")
        if not isinstance(label, str) or not isinstance(value, str):
            errors.append(f"Options[{index}]: label and value must be strings")
            continue
        if value in seen_values:
            errors.append(f"Options[{index}]: duplicate value '{value}'")
        seen_values.add(value)
    return errors


def validate_input_value(
    value: Optional[str],
    input_type: str,
    options: Optional[list] = None,
) -> Tuple[bool, str]:
    """
    Validate a tab input value against its type and options.

    Empty values are always accepted.

    Args:
        value: The value to validate (inputs store values as strings)
        input_type: One of "text", "number", "date"
        options: Optional enumerated choices

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or value == "":
        return True, ""

    if not isinstance(value, str):
        return False, "Value: must be a string"

    if options:
        allowed = {option.get("value") for option in options if isinstance(option, dict)}
        if value not in allowed:
            return False, f"Value: {ERROR_INVALID_OPTION}"
        return True, ""

    if input_type == TabInputType.NUMBER:
        # float() also accepts "nan", "inf" and "1_000"
        if "_" in value:
            return False, f"Value: {ERROR_INVALID_NUMBER}"
        try:
            number = float(value)
        except ValueError:
            return False, f"Value: {ERROR_INVALID_NUMBER}"
        if not math.isfinite(number):
            return False, f"Value: {ERROR_INVALID_NUMBER}"
    elif input_type == TabInputType.DATE:
        if not _DATE_PATTERN.match(value):
            return False, f"Value: {ERROR_INVALID_DATE}"
        try:
            date.fromisoformat(value)
        except ValueError:
            return False, f"Value: {ERROR_INVALID_DATE}"

    return True, ""

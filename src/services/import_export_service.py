"""
Import/Export Service - JSON export and import of the dashboard configuration.

The export file bundles the tabs document and every tab's inputs document:

    {
      "version": "1.0",
      "exported_at": "2026-01-16T14:30:15Z",
      "source": "Dashboard Tabs v0.1.0",
      "tabs": [...],
      "groups": [...],
      "inputs": {"<tab slug>": [...]}
    }

Import goes through dashboard_state_service so it gets the same validation
and reconciliation as the REST save endpoints.
"""

import json
from typing import Any, Dict, List

from src.services import dashboard_state_service
from src.services.database import session_scope
from src.services.exceptions import ServiceError, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import APP_NAME, APP_VERSION, EXPORT_FORMAT_VERSION
from src.utils.datetime_utils import to_iso, utc_now

logger = get_service_logger(__name__)

IMPORT_MODES = ["replace", "merge"]


# ============================================================================
# Result Classes
# ============================================================================


class ImportResult:
    """Result of an import operation with per-entity tracking."""

    def __init__(self):
        self.success = True
        self.errors: List[str] = []
        self.entity_counts: Dict[str, int] = {}

    def add_counts(self, counts: Dict[str, int]):
        """Accumulate counts reported by the state service."""
        for name, count in counts.items():
            self.entity_counts[name] = self.entity_counts.get(name, 0) + count

    def add_error(self, message: str):
        """Record a fatal import error."""
        self.success = False
        self.errors.append(message)

    def get_summary(self) -> str:
        """Get a user-friendly summary string of the import results."""
        lines = [
            "=" * 60,
            "Import Summary",
            "=" * 60,
        ]
        for name, count in sorted(self.entity_counts.items()):
            lines.append(f"  {name}: {count}")
        if self.errors:
            lines.append("\nErrors:")
            for error in self.errors:
                lines.append(f"  - {error}")
        lines.append("=" * 60)
        return "\n".join(lines)


class ExportResult:
    """Result of an export operation."""

    def __init__(self, file_path: str, record_count: int):
        self.file_path = file_path
        self.record_count = record_count
        self.success = True
        self.error = None
        self.entity_counts: Dict[str, int] = {}

    def add_entity_count(self, entity_type: str, count: int):
        """Add count for a specific entity type."""
        self.entity_counts[entity_type] = count

    def get_summary(self) -> str:
        """Get a summary string of the export results."""
        if not self.success:
            return f"Export failed: {self.error}"

        lines = [f"Exported {self.record_count} records to {self.file_path}"]

        if self.entity_counts:
            lines.append("")
            for entity, count in self.entity_counts.items():
                lines.append(f"  {entity}: {count}")

        return "\n".join(lines)


# ============================================================================
# Export
# ============================================================================


def build_export_data() -> Dict[str, Any]:
    """
    Collect the full configuration as an export document.

    Returns:
        Export dictionary (see module docstring)
    """
    with session_scope() as session:
        state = dashboard_state_service.get_tabs_state(session=session)
        inputs = {}
        for tab in state["tabs"]:
            tab_inputs = dashboard_state_service.get_tab_inputs_state(tab["id"], session=session)
            if tab_inputs["inputs"]:
                inputs[tab["id"]] = tab_inputs["inputs"]

    return {
        "version": EXPORT_FORMAT_VERSION,
        "exported_at": to_iso(utc_now()),
        "source": f"{APP_NAME} v{APP_VERSION}",
        "tabs": state["tabs"],
        "groups": state["groups"],
        "inputs": inputs,
    }


def export_all_to_json(file_path: str) -> ExportResult:
    """
    Export tabs, groups and inputs to a JSON file.

    Args:
        file_path: Path to output JSON file

    Returns:
        ExportResult with export statistics
    """
    try:
        data = build_export_data()
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        input_count = sum(len(items) for items in data["inputs"].values())
        result = ExportResult(file_path, len(data["tabs"]) + len(data["groups"]) + input_count)
        result.add_entity_count("tabs", len(data["tabs"]))
        result.add_entity_count("groups", len(data["groups"]))
        result.add_entity_count("inputs", input_count)

        log_operation(
            logger,
            operation="export_all_to_json",
            outcome="success",
            file_path=file_path,
            record_count=result.record_count,
        )
        return result

    except (OSError, ServiceError) as e:
        log_operation(
            logger,
            operation="export_all_to_json",
            outcome="error",
            file_path=file_path,
            error=str(e),
        )
        result = ExportResult(file_path, 0)
        result.success = False
        result.error = str(e)
        return result


# ============================================================================
# Import
# ============================================================================


def _merge_by_id(current: List[Dict], incoming: List[Dict]) -> List[Dict]:
    """Keep current entries not present in incoming, incoming entries win."""
    incoming_ids = {
        item["id"]
        for item in incoming
        if isinstance(item, dict) and isinstance(item.get("id"), str)
    }
    kept = [item for item in current if item["id"] not in incoming_ids]
    return kept + list(incoming)


def import_data(data: Dict[str, Any], mode: str = "replace") -> ImportResult:
    """
    Import an export document in a single transaction.

    Args:
        data: Parsed export document
        mode: "replace" (stored configuration becomes exactly the document) or
            "merge" (entries in the document are added or overwrite stored
            entries with the same ID; other stored entries are kept)

    Returns:
        ImportResult; on failure nothing is written
    """
    result = ImportResult()

    if mode not in IMPORT_MODES:
        result.add_error(f"Unknown import mode '{mode}'")
        return result
    if not isinstance(data, dict):
        result.add_error("Import file must contain a JSON object")
        return result
    version = data.get("version")
    if version != EXPORT_FORMAT_VERSION:
        result.add_error(
            f"Unsupported export version '{version}' (expected {EXPORT_FORMAT_VERSION})"
        )
        return result

    tabs = data.get("tabs") or []
    groups = data.get("groups") or []
    inputs = data.get("inputs") or {}
    for name, value in (("tabs", tabs), ("groups", groups)):
        if not isinstance(value, list):
            result.add_error(f"{name} must be an array")
    if not result.success:
        return result
    if not isinstance(inputs, dict):
        result.add_error("inputs must be an object keyed by tab id")
        return result

    try:
        with session_scope() as session:
            if mode == "merge":
                current = dashboard_state_service.get_tabs_state(session=session)
                tabs = _merge_by_id(current["tabs"], tabs)
                groups = _merge_by_id(current["groups"], groups)

            result.add_counts(
                dashboard_state_service.save_tabs_state(tabs, groups, session=session)
            )
            if mode == "replace":
                # Tabs absent from "inputs" end up with no inputs
                inputs = dict(inputs)
                for tab in tabs:
                    inputs.setdefault(tab["id"], [])
            for tab_id, tab_inputs in inputs.items():
                if mode == "merge" and isinstance(tab_inputs, list):
                    stored = dashboard_state_service.get_tab_inputs_state(
                        tab_id, session=session
                    )
                    tab_inputs = _merge_by_id(stored["inputs"], tab_inputs)
                result.add_counts(
                    dashboard_state_service.save_tab_inputs_state(
                        tab_id, tab_inputs, session=session
                    )
                )
    except ValidationError as e:
        for error in e.errors:
            result.add_error(error)
    except ServiceError as e:
        result.add_error(str(e))

    log_operation(
        logger,
        operation="import_data",
        outcome="success" if result.success else "failed",
        mode=mode,
        error_count=len(result.errors),
    )
    return result


def import_all_from_json(file_path: str, mode: str = "replace") -> ImportResult:
    """
    Import tabs, groups and inputs from a JSON export file.

    Args:
        file_path: Path to JSON file written by export_all_to_json()
        mode: "replace" or "merge" (see import_data)

    Returns:
        ImportResult with import statistics
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        result = ImportResult()
        result.add_error(f"Cannot read {file_path}: {e}")
        return result

    return import_data(data, mode=mode)

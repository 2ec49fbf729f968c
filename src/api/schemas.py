"""
Pydantic request models and JSON key conversion for the REST API.

Services work with snake_case state dicts; the wire format is camelCase
(``groupId``, ``parentId``, ``isPublic``, ``defaultValue``, ...).
Request models accept either spelling.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake


class ApiModel(BaseModel):
    """Base for request bodies: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# =============================================================================
# Key Conversion
# =============================================================================


def camelize(data: Any) -> Any:
    """Recursively convert dict keys from snake_case to camelCase."""
    if isinstance(data, dict):
        return {to_camel(key): camelize(value) for key, value in data.items()}
    if isinstance(data, list):
        return [camelize(item) for item in data]
    return data


def snakify(data: Any) -> Any:
    """
    Convert the keys of a state entry (or list of entries) to snake_case.

    Only the top level of each entry is converted; nested values such as
    input options are passed through. Non-dict entries are left alone so
    the services can report them.
    """
    if isinstance(data, list):
        return [snakify(item) for item in data]
    if isinstance(data, dict):
        return {to_snake(key): value for key, value in data.items()}
    return data


# =============================================================================
# Whole-state Documents
# =============================================================================


class TabsStateIn(BaseModel):
    """Body of POST /api/user-configs/dashboard-tabs."""

    tabs: Any = None
    groups: Any = None


class TabInputsStateIn(BaseModel):
    """Body of POST /api/user-configs/tab-inputs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tab_id: Optional[str] = None
    inputs: Any = None


# =============================================================================
# Tabs
# =============================================================================


class TabCreate(ApiModel):
    name: str
    group_id: Optional[str] = None


class TabUpdate(ApiModel):
    """Partial tab update; only fields present in the body change."""

    name: Optional[str] = None
    link: Optional[str] = None
    icon: Optional[str] = None
    is_public: Optional[bool] = None


class TabDuplicate(ApiModel):
    name: Optional[str] = None


class TabMove(ApiModel):
    group_id: Optional[str] = None


class ReorderRequest(ApiModel):
    from_index: int
    to_index: int


class TabReorder(ReorderRequest):
    group_id: Optional[str] = None


# =============================================================================
# Groups
# =============================================================================


class GroupCreate(ApiModel):
    name: str
    parent_id: Optional[str] = None


class GroupRename(ApiModel):
    name: str


class GroupMove(ApiModel):
    parent_id: Optional[str] = None


class GroupReorder(ReorderRequest):
    parent_id: Optional[str] = None


# =============================================================================
# Tab Inputs
# =============================================================================


class InputOption(BaseModel):
    label: str
    value: str


class InputCreate(ApiModel):
    key: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None
    value: Optional[str] = None
    default_value: Optional[str] = None
    placeholder: Optional[str] = None
    description: Optional[str] = None
    options: Optional[List[InputOption]] = None

    def service_kwargs(self) -> Dict[str, Any]:
        kwargs = self.model_dump(exclude={"options"})
        kwargs["options"] = [o.model_dump() for o in self.options] if self.options else None
        return kwargs


class InputUpdate(InputCreate):
    """Partial input update; only fields present in the body change."""

    def updates(self) -> Dict[str, Any]:
        updates = self.model_dump(exclude_unset=True, exclude={"options"})
        if "options" in self.model_fields_set:
            updates["options"] = (
                [o.model_dump() for o in self.options] if self.options else None
            )
        return updates


class InputValue(ApiModel):
    value: Optional[str] = Field(default=None)

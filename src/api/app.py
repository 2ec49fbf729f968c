"""
FastAPI application exposing the dashboard configuration.

Routes map one-to-one onto service operations. Each mutating request runs
in its own session_scope, so a request either commits completely or not
at all.

Error responses are JSON ``{"error": message}`` with the status code the
service exception declares (ValidationError also lists its "errors").
Anything else becomes a 500 with a "Failed to ..." message.
"""

import functools
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.api.schemas import (
    GroupCreate,
    GroupMove,
    GroupRename,
    GroupReorder,
    InputCreate,
    InputUpdate,
    InputValue,
    ReorderRequest,
    TabCreate,
    TabDuplicate,
    TabInputsStateIn,
    TabMove,
    TabReorder,
    TabsStateIn,
    TabUpdate,
    camelize,
    snakify,
)
from src.services import (
    dashboard_state_service,
    dashboard_tab_service,
    tab_group_service,
    tab_input_service,
)
from src.services.database import session_scope
from src.services.exceptions import ServiceError, ValidationError
from src.utils.constants import APP_NAME, APP_VERSION
from src.utils.datetime_utils import to_iso, utc_now

logger = logging.getLogger("dashboard_tabs.api")


def failure_message(message: str) -> Callable:
    """
    Turn unexpected exceptions raised by an endpoint into a 500 response.

    Service errors with a client-error status code pass through to the
    ServiceError handler.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ServiceError as e:
                if e.http_status_code < 500:
                    raise
                logger.exception(message)
                return JSONResponse(status_code=500, content={"error": message})
            except Exception:
                logger.exception(message)
                return JSONResponse(status_code=500, content={"error": message})

        return wrapper

    return decorator


def _success() -> dict:
    return {"success": True}


# =============================================================================
# Exception Handlers
# =============================================================================


async def _service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, ValidationError):
        content = {"error": "; ".join(exc.errors), "errors": exc.errors}
    else:
        content = {"error": str(exc)}
    return JSONResponse(status_code=exc.http_status_code, content=content)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "errors": errors},
    )


# =============================================================================
# Application
# =============================================================================


def create_app() -> FastAPI:
    """Build the FastAPI application with all routes and error handlers."""
    app = FastAPI(title=APP_NAME, version=APP_VERSION)

    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    # -------------------------------------------------------------------------
    # Whole-state documents
    # -------------------------------------------------------------------------

    @app.get("/api/user-configs/dashboard-tabs")
    @failure_message("Failed to fetch dashboard tabs")
    def get_dashboard_tabs():
        """Load the tabs document."""
        return camelize(dashboard_state_service.get_tabs_state())

    @app.post("/api/user-configs/dashboard-tabs")
    @failure_message("Failed to save dashboard tabs")
    def save_dashboard_tabs(body: TabsStateIn):
        """Replace the tabs document."""
        groups = snakify(body.groups) if body.groups is not None else None
        dashboard_state_service.save_tabs_state(snakify(body.tabs), groups)
        return _success()

    @app.get("/api/user-configs/tab-inputs")
    @failure_message("Failed to fetch tab inputs")
    def get_tab_inputs(tab_id: Optional[str] = Query(default=None, alias="tabId")):
        """Load the inputs document of one tab."""
        if not tab_id:
            raise ValidationError(["tabId is required"])
        return camelize(dashboard_state_service.get_tab_inputs_state(tab_id))

    @app.post("/api/user-configs/tab-inputs")
    @failure_message("Failed to save tab inputs")
    def save_tab_inputs(body: TabInputsStateIn):
        """Replace the inputs of one tab."""
        dashboard_state_service.save_tab_inputs_state(body.tab_id, snakify(body.inputs))
        return _success()

    # -------------------------------------------------------------------------
    # Tabs
    # -------------------------------------------------------------------------

    @app.post("/api/tabs", status_code=201)
    @failure_message("Failed to create tab")
    def create_tab(body: TabCreate):
        with session_scope() as session:
            tab = dashboard_tab_service.add_tab(body.name, body.group_id, session=session)
            return camelize(tab.to_state_dict())

    @app.post("/api/tabs/reorder")
    @failure_message("Failed to reorder tabs")
    def reorder_tabs(body: TabReorder):
        with session_scope() as session:
            tabs = dashboard_tab_service.reorder_tabs(
                body.from_index, body.to_index, body.group_id, session=session
            )
            return {"tabs": camelize([tab.to_state_dict() for tab in tabs])}

    @app.patch("/api/tabs/{tab_id}")
    @failure_message("Failed to update tab")
    def update_tab(tab_id: str, body: TabUpdate):
        """Rename a tab and/or change its link, icon or visibility."""
        fields = body.model_dump(include=body.model_fields_set - {"name"})
        with session_scope() as session:
            tab = dashboard_tab_service.get_tab(tab_id, session=session)
            if "name" in body.model_fields_set:
                tab = dashboard_tab_service.rename_tab(tab_id, body.name, session=session)
            if fields:
                tab = dashboard_tab_service.update_tab(tab_id, session=session, **fields)
            return camelize(tab.to_state_dict())

    @app.delete("/api/tabs/{tab_id}")
    @failure_message("Failed to delete tab")
    def delete_tab(tab_id: str):
        dashboard_tab_service.remove_tab(tab_id)
        return _success()

    @app.post("/api/tabs/{tab_id}/duplicate", status_code=201)
    @failure_message("Failed to duplicate tab")
    def duplicate_tab(tab_id: str, body: Optional[TabDuplicate] = None):
        name = body.name if body is not None else None
        with session_scope() as session:
            tab = dashboard_tab_service.duplicate_tab(tab_id, name, session=session)
            return camelize(tab.to_state_dict())

    @app.post("/api/tabs/{tab_id}/move")
    @failure_message("Failed to move tab")
    def move_tab(tab_id: str, body: TabMove):
        with session_scope() as session:
            tab = dashboard_tab_service.move_tab_to_group(tab_id, body.group_id, session=session)
            return camelize(tab.to_state_dict())

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    @app.get("/api/groups/tree")
    @failure_message("Failed to fetch group tree")
    def group_tree():
        return camelize(tab_group_service.get_group_tree())

    @app.post("/api/groups", status_code=201)
    @failure_message("Failed to create group")
    def create_group(body: GroupCreate):
        with session_scope() as session:
            group = tab_group_service.add_group(body.name, body.parent_id, session=session)
            return camelize(group.to_state_dict())

    @app.post("/api/groups/reorder")
    @failure_message("Failed to reorder groups")
    def reorder_groups(body: GroupReorder):
        with session_scope() as session:
            groups = tab_group_service.reorder_groups(
                body.from_index, body.to_index, body.parent_id, session=session
            )
            return {"groups": camelize([group.to_state_dict() for group in groups])}

    @app.patch("/api/groups/{group_id}")
    @failure_message("Failed to rename group")
    def rename_group(group_id: str, body: GroupRename):
        with session_scope() as session:
            group = tab_group_service.rename_group(group_id, body.name, session=session)
            return camelize(group.to_state_dict())

    @app.delete("/api/groups/{group_id}")
    @failure_message("Failed to delete group")
    def delete_group(group_id: str):
        tab_group_service.remove_group(group_id)
        return _success()

    @app.post("/api/groups/{group_id}/move")
    @failure_message("Failed to move group")
    def move_group(group_id: str, body: GroupMove):
        with session_scope() as session:
            group = tab_group_service.move_group_to_parent(
                group_id, body.parent_id, session=session
            )
            return camelize(group.to_state_dict())

    # -------------------------------------------------------------------------
    # Tab inputs
    # -------------------------------------------------------------------------

    @app.post("/api/tabs/{tab_id}/inputs", status_code=201)
    @failure_message("Failed to create tab input")
    def create_input(tab_id: str, body: InputCreate):
        with session_scope() as session:
            tab_input = tab_input_service.add_input(
                tab_id, session=session, **body.service_kwargs()
            )
            return camelize(tab_input.to_state_dict())

    @app.post("/api/tabs/{tab_id}/inputs/reorder")
    @failure_message("Failed to reorder tab inputs")
    def reorder_inputs(tab_id: str, body: ReorderRequest):
        with session_scope() as session:
            inputs = tab_input_service.reorder_inputs(
                tab_id, body.from_index, body.to_index, session=session
            )
            return {"inputs": camelize([i.to_state_dict() for i in inputs])}

    @app.patch("/api/inputs/{input_id}")
    @failure_message("Failed to update tab input")
    def update_input(input_id: str, body: InputUpdate):
        with session_scope() as session:
            tab_input = tab_input_service.update_input(input_id, body.updates(), session=session)
            return camelize(tab_input.to_state_dict())

    @app.put("/api/inputs/{input_id}/value")
    @failure_message("Failed to set tab input value")
    def set_input_value(input_id: str, body: InputValue):
        with session_scope() as session:
            tab_input = tab_input_service.set_input_value(input_id, body.value, session=session)
            return camelize(tab_input.to_state_dict())

    @app.delete("/api/inputs/{input_id}")
    @failure_message("Failed to delete tab input")
    def delete_input(input_id: str):
        tab_input_service.remove_input(input_id)
        return _success()

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    @app.get("/api/health")
    def health_check():
        """Health check endpoint."""
        try:
            with session_scope() as session:
                session.execute(text("SELECT 1"))
            database_ok = True
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            database_ok = False
        return {
            "status": "healthy" if database_ok else "degraded",
            "database": database_ok,
            "version": APP_VERSION,
            "timestamp": to_iso(utc_now()),
        }

    return app


app = create_app()

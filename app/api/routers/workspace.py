from __future__ import annotations

from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import CurrentSession
from app.api.responses import Envelope, ok
from app.domain.models import WorkspaceAction, WorkspacePreferences
from app.domain.tab_workspace import TabWorkspace
from app.services.workspace_service import PreferenceStorage, WorkspaceService

router = APIRouter()


def get_workspace_service(session: CurrentSession) -> WorkspaceService:
    return WorkspaceService(session.subject_id, PreferenceStorage(session.subject_id))


Service = Annotated[WorkspaceService, Depends(get_workspace_service)]


def _state(workspace: TabWorkspace) -> dict[str, Any]:
    return {
        **workspace.snapshot(),
        "render_plan": asdict(workspace.render_plan()),
        "scroll_restore": workspace.scroll_restore(),
    }


def _result(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    return asdict(value)


@router.get("", response_model=Envelope[dict[str, Any]])
def get_workspace(service: Service) -> dict[str, Any]:
    return ok(_state(service.load()))


@router.post("/actions", response_model=Envelope[dict[str, Any]])
def apply_workspace_action(payload: WorkspaceAction, service: Service) -> dict[str, Any]:
    workspace, result = service.apply(payload)
    return ok({"changed": result is not False, "result": _result(result), "state": _state(workspace)})


@router.get("/preferences", response_model=Envelope[WorkspacePreferences])
def get_workspace_preferences(service: Service) -> dict[str, Any]:
    return ok(service.preferences())


@router.put("/preferences", response_model=Envelope[WorkspacePreferences])
def update_workspace_preferences(payload: WorkspacePreferences, service: Service) -> dict[str, Any]:
    return ok(service.update_preferences(payload))

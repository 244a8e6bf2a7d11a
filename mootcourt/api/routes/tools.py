"""
Downloadable tool catalogue and the Python execution endpoints.

Tools may carry a ``python_code`` snippet; ``POST /api/tools/{id}/run``
executes it in a child interpreter with the caller's input bound to
``user_input``. ``POST /api/run-python`` runs an ad-hoc snippet for any
signed-in user.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mootcourt.api.deps import get_current_user, require_admin
from mootcourt.core.exceptions import ValidationFailedError
from mootcourt.core.models import (
    MessageResponse,
    RunPythonRequest,
    ToolCreate,
    ToolResponse,
    ToolRunRequest,
    ToolRunResponse,
    UserResponse,
)
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository
from mootcourt.services.tool_runner import NO_CODE_OUTPUT, PythonRunner, inject_user_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tools"])


def _to_response(tool) -> ToolResponse:
    return ToolResponse(
        id=tool.id,
        title=tool.title,
        description=tool.description,
        download_url=tool.download_url,
        images=tool.images or [],
        python_code=tool.python_code,
        is_active=tool.is_active,
        created_at=tool.created_at,
        updated_at=tool.updated_at,
    )


def _tool_fields(body: ToolCreate) -> dict:
    """Validate a create/update body and map it to column values."""
    if not body.title or not body.description or not body.download_url:
        raise ValidationFailedError("Title, description, and download URL are required")
    return {
        "title": body.title,
        "description": body.description,
        "download_url": body.download_url,
        "images": body.images or [],
        "python_code": body.python_code or None,
        "is_active": True if body.is_active is None else body.is_active,
    }


@router.get("/tools", response_model=list[ToolResponse])
async def list_active_tools():
    """Public catalogue: active tools only."""
    async with get_session() as session:
        tools = await TrainingRepository(session).list_tools(active_only=True)
    return [_to_response(t) for t in tools]


@router.get("/admin/tools", response_model=list[ToolResponse])
async def list_all_tools(_admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        tools = await TrainingRepository(session).list_tools()
    return [_to_response(t) for t in tools]


@router.post("/admin/tools", response_model=ToolResponse)
async def create_tool(body: ToolCreate, _admin: UserResponse = Depends(require_admin)):
    fields = _tool_fields(body)
    async with get_session() as session:
        tool = await TrainingRepository(session).create_tool(**fields)
        logger.info("Created tool %s", tool.id)
        return _to_response(tool)


@router.put("/admin/tools/{tool_id}", response_model=ToolResponse)
async def update_tool(tool_id: int, body: ToolCreate, _admin: UserResponse = Depends(require_admin)):
    fields = _tool_fields(body)
    async with get_session() as session:
        tool = await TrainingRepository(session).update_tool(tool_id, **fields)
        return _to_response(tool)


@router.delete("/admin/tools/{tool_id}", response_model=MessageResponse)
async def delete_tool(tool_id: int, _admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        await TrainingRepository(session).delete_tool(tool_id)
    logger.info("Deleted tool %s", tool_id)
    return MessageResponse(message="Tool deleted successfully")


@router.post("/tools/{tool_id}/run", response_model=ToolRunResponse)
async def run_tool(
    tool_id: int,
    body: ToolRunRequest,
    _user: UserResponse = Depends(get_current_user),
):
    """Execute an active tool's snippet with the caller's input."""
    async with get_session() as session:
        tool = await TrainingRepository(session).get_tool(tool_id, active_only=True)
        code = tool.python_code

    if not code or not code.strip():
        return ToolRunResponse(output=NO_CODE_OUTPUT)

    result = await PythonRunner().run(inject_user_input(code, body.user_input), prefix="tool")
    if result.ok:
        return ToolRunResponse(output=result.stdout or "Tool executed successfully")

    logger.warning("Tool %s failed (exit=%s, timed_out=%s)", tool_id, result.exit_code, result.timed_out)
    return JSONResponse(status_code=400, content={"error": result.stderr or "Tool execution failed"})


@router.post("/run-python")
async def run_python(body: RunPythonRequest, _user: UserResponse = Depends(get_current_user)):
    """Run an ad-hoc snippet and return ``{"output": ...}`` or ``{"error": ...}``."""
    if not isinstance(body.code, str) or not body.code:
        return JSONResponse(status_code=400, content={"error": "Code is required and must be a string"})

    result = await PythonRunner().run(body.code)
    if result.ok:
        return {"output": result.stdout or "Code executed successfully"}
    return JSONResponse(status_code=400, content={"error": result.stderr or "Execution failed"})

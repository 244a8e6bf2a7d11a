"""
Admin endpoints for AI model configurations.

Keys are write-only: responses mask them, and an update without a key keeps
the stored one. Temperature is exchanged as a float and stored in hundredths.
"""

import logging

from fastapi import APIRouter, Depends

from mootcourt.api.deps import require_admin
from mootcourt.core.exceptions import ValidationFailedError
from mootcourt.core.models import (
    AIModelCreate,
    AIModelResponse,
    AIModelTestResponse,
    MessageResponse,
    UserResponse,
)
from mootcourt.services.llm.base import ModelConfig
from mootcourt.services.llm.client import LLMClient
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/ai-models", tags=["ai-models"])

MASKED_KEY = "••••••••"
TEST_PROMPT = "Please respond with 'AI model test successful' to confirm you're working correctly."
TEST_MAX_TOKENS = 100


def _to_response(model) -> AIModelResponse:
    return AIModelResponse(
        id=model.id,
        name=model.name,
        provider=model.provider,
        api_key=MASKED_KEY if model.api_key else "",
        endpoint=model.endpoint,
        model=model.model,
        temperature=model.temperature / 100,
        max_tokens=model.max_tokens,
        system_prompt=model.system_prompt,
        is_active=model.is_active,
        is_default=model.is_default,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _model_fields(body: AIModelCreate, require_key: bool) -> dict:
    required = [body.name, body.provider, body.endpoint, body.model, body.system_prompt]
    if require_key:
        required.append(body.api_key)
    if not all(value.strip() for value in required):
        raise ValidationFailedError("All required fields must be provided")
    return {
        "name": body.name,
        "provider": body.provider,
        "api_key": body.api_key,
        "endpoint": body.endpoint,
        "model": body.model,
        "temperature": round(body.temperature * 100),
        "max_tokens": body.max_tokens,
        "system_prompt": body.system_prompt,
        "is_active": True if body.is_active is None else body.is_active,
        "is_default": bool(body.is_default),
    }


@router.get("", response_model=list[AIModelResponse])
async def list_ai_models(_admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        models = await TrainingRepository(session).list_ai_models()
    return [_to_response(m) for m in models]


@router.post("", response_model=AIModelResponse)
async def create_ai_model(body: AIModelCreate, _admin: UserResponse = Depends(require_admin)):
    """Create a configuration; flagging it default demotes the previous default."""
    fields = _model_fields(body, require_key=True)
    async with get_session() as session:
        model = await TrainingRepository(session).create_ai_model(**fields)
        logger.info("Created AI model %s (%s)", model.id, model.provider)
        return _to_response(model)


@router.put("/{model_id}", response_model=AIModelResponse)
async def update_ai_model(
    model_id: int,
    body: AIModelCreate,
    _admin: UserResponse = Depends(require_admin),
):
    fields = _model_fields(body, require_key=False)
    async with get_session() as session:
        model = await TrainingRepository(session).update_ai_model(model_id, **fields)
        return _to_response(model)


@router.delete("/{model_id}", response_model=MessageResponse)
async def delete_ai_model(model_id: int, _admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        await TrainingRepository(session).delete_ai_model(model_id)
    return MessageResponse(message="AI model deleted successfully")


@router.post("/{model_id}/test", response_model=AIModelTestResponse)
async def test_ai_model(model_id: int, _admin: UserResponse = Depends(require_admin)):
    """Send a short prompt to the model and echo its reply.

    Provider failures surface as 502 through :class:`AIProviderError`.
    """
    async with get_session() as session:
        model = await TrainingRepository(session).get_ai_model(model_id)
        config = ModelConfig.from_record(model)

    text = await LLMClient(config).complete(
        TEST_PROMPT, max_tokens=min(config.max_tokens, TEST_MAX_TOKENS)
    )
    logger.info("AI model %s test succeeded", model_id)
    return AIModelTestResponse(
        success=True,
        response=text or "No response content",
        model=config.name,
        has_video_processing=False,
    )

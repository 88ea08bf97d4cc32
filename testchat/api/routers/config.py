from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import admin_required, jwt_required
from ..deps import settings_store
from ...core.settings_store import SettingsStore
from ...services.config_service import (
    IntegrationSettings,
    TestConfig,
    load_integrations,
    load_test_config,
    save_integrations,
    save_test_config,
)


router = APIRouter(prefix="/config", tags=["config"], dependencies=[Depends(jwt_required)])


class IntegrationUpdate(BaseModel):
    """Partial update; omitted secrets keep their stored value."""

    slack_bot_token: Optional[str] = None
    slack_channel: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: Optional[str] = None
    use_gemini: Optional[bool] = None


@router.get("/test", response_model=TestConfig)
async def get_test_config(settings: SettingsStore = Depends(settings_store)) -> TestConfig:
    return load_test_config(settings)


@router.put("/test", response_model=TestConfig, dependencies=[Depends(admin_required)])
async def put_test_config(config: TestConfig, settings: SettingsStore = Depends(settings_store)) -> TestConfig:
    return save_test_config(settings, config)


@router.get("/integrations")
async def get_integrations(settings: SettingsStore = Depends(settings_store)) -> dict:
    return load_integrations(settings).redacted()


@router.put("/integrations", dependencies=[Depends(admin_required)])
async def put_integrations(req: IntegrationUpdate, settings: SettingsStore = Depends(settings_store)) -> dict:
    current = load_integrations(settings)
    updated = IntegrationSettings(**{**current.model_dump(), **req.model_dump(exclude_none=True)})
    return save_integrations(settings, updated).redacted()

"""Provider router - scheduling policy endpoints"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ScheduleSettingsResponse, ScheduleSettingsUpdate
from .service import ProviderSettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


def get_provider_settings_service(db: Session = Depends(get_db)) -> ProviderSettingsService:
    """Dependency injection for ProviderSettingsService"""
    return ProviderSettingsService(db)


@router.get("/{provider_id}/schedule-settings", response_model=ScheduleSettingsResponse)
async def get_schedule_settings(
    provider_id: int,
    service: ProviderSettingsService = Depends(get_provider_settings_service),
):
    """Get the provider's scheduling policy with defaults filled in"""
    settings = service.get_schedule_settings(provider_id)
    return ScheduleSettingsResponse(provider_id=provider_id, settings=settings)


@router.put("/{provider_id}/schedule-settings", response_model=ScheduleSettingsResponse)
async def update_schedule_settings(
    provider_id: int,
    data: ScheduleSettingsUpdate,
    service: ProviderSettingsService = Depends(get_provider_settings_service),
):
    """Update the provider's scheduling policy (partial)"""
    settings = service.update_schedule_settings(provider_id, data)
    return ScheduleSettingsResponse(provider_id=provider_id, settings=settings)

"""Provider service - scheduling policy reads and validated writes"""

import logging

from sqlalchemy.orm import Session

from ...models import ServiceProvider
from ..bookings.errors import NotFoundError
from .repository import ProviderRepository
from .schemas import ProviderScheduleSettings, ScheduleSettingsUpdate, resolve_schedule_settings

logger = logging.getLogger(__name__)

NULLABLE_SETTINGS = {"welcome_message", "confirmation_message"}


class ProviderSettingsService:
    """Service layer for provider scheduling policy"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def _get_provider(self, provider_id: int) -> ServiceProvider:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found")
        return provider

    def get_schedule_settings(self, provider_id: int) -> ProviderScheduleSettings:
        return resolve_schedule_settings(self._get_provider(provider_id).schedule_settings)

    def update_schedule_settings(
        self, provider_id: int, update: ScheduleSettingsUpdate
    ) -> ProviderScheduleSettings:
        """Merge a validated partial update over the current settings and store it"""
        provider = self._get_provider(provider_id)
        current = resolve_schedule_settings(provider.schedule_settings)

        # null clears the optional messages; for policy fields it means "leave as is"
        changes = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_SETTINGS
        }
        merged = ProviderScheduleSettings.model_validate({**current.model_dump(), **changes})

        self.repo.save_schedule_settings(self.db, provider, merged.model_dump(by_alias=True))
        logger.info(f"⚙️ Schedule settings updated for provider {provider_id}: {sorted(changes)}")
        return merged

"""Provider domain schemas - scheduling policy and its resolution from storage"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class ProviderScheduleSettings(BaseModel):
    """
    Per-provider scheduling policy.

    Every default means "no restriction": zero advance hours, unlimited
    advance days (0), unlimited bookings per day (0), manual acceptance.
    """

    model_config = ConfigDict(populate_by_name=True)

    min_advance_hours: int = Field(0, ge=0, alias="minAdvanceHours")
    max_advance_days: int = Field(0, ge=0, alias="maxAdvanceDays")  # 0 = unlimited
    max_daily: int = Field(0, ge=0, alias="maxDaily")  # 0 = unlimited
    notify_whatsapp: bool = Field(True, alias="notifyWhatsapp")
    auto_accept: bool = Field(False, alias="autoAccept")
    reminders: bool = True
    buffer_minutes: int = Field(0, ge=0, alias="bufferMinutes")
    welcome_message: Optional[str] = Field(None, max_length=1000, alias="welcomeMessage")
    confirmation_message: Optional[str] = Field(None, max_length=1000, alias="confirmationMessage")


class ScheduleSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    min_advance_hours: Optional[int] = Field(None, ge=0, alias="minAdvanceHours")
    max_advance_days: Optional[int] = Field(None, ge=0, alias="maxAdvanceDays")
    max_daily: Optional[int] = Field(None, ge=0, alias="maxDaily")
    notify_whatsapp: Optional[bool] = Field(None, alias="notifyWhatsapp")
    auto_accept: Optional[bool] = Field(None, alias="autoAccept")
    reminders: Optional[bool] = None
    buffer_minutes: Optional[int] = Field(None, ge=0, alias="bufferMinutes")
    welcome_message: Optional[str] = Field(None, max_length=1000, alias="welcomeMessage")
    confirmation_message: Optional[str] = Field(None, max_length=1000, alias="confirmationMessage")


def resolve_schedule_settings(raw: Any) -> ProviderScheduleSettings:
    """
    Build typed settings from the stored blob without ever raising.

    Accepts a dict, a JSON string, or None. Unparsable blobs fall back to the
    defaults entirely; individually malformed fields fall back one by one.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("⚠️ Unparsable schedule settings blob, using defaults")
            return ProviderScheduleSettings()

    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning(f"⚠️ Schedule settings of type {type(raw).__name__} ignored, using defaults")
        return ProviderScheduleSettings()

    cleaned: dict[str, Any] = {}
    for name, field in ProviderScheduleSettings.model_fields.items():
        key = field.alias or name
        if key in raw:
            value = raw[key]
        elif name in raw:
            value = raw[name]
        else:
            continue

        try:
            ProviderScheduleSettings.model_validate({key: value})
        except PydanticValidationError:
            logger.warning(f"⚠️ Ignoring malformed schedule setting {key}={value!r}")
            continue
        cleaned[key] = value

    return ProviderScheduleSettings.model_validate(cleaned)


class ScheduleSettingsResponse(BaseModel):
    success: bool = True
    provider_id: int = Field(serialization_alias="providerId")
    settings: ProviderScheduleSettings

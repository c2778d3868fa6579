"""Provider repository - Database operations for providers and their service links"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ServiceProvider, ServiceProviderService


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[ServiceProvider]:
        return (
            db.query(ServiceProvider)
            .options(joinedload(ServiceProvider.user))
            .filter(ServiceProvider.id == provider_id)
            .first()
        )

    @staticmethod
    def get_service_link(
        db: Session, provider_id: int, service_id: int
    ) -> Optional[ServiceProviderService]:
        """Get the pricing link between a provider and a service, with both sides loaded"""
        return (
            db.query(ServiceProviderService)
            .options(
                joinedload(ServiceProviderService.provider).joinedload(ServiceProvider.user),
                joinedload(ServiceProviderService.service),
            )
            .filter(
                ServiceProviderService.service_provider_id == provider_id,
                ServiceProviderService.service_id == service_id,
            )
            .first()
        )

    @staticmethod
    def save_schedule_settings(db: Session, provider: ServiceProvider, settings: dict) -> ServiceProvider:
        provider.schedule_settings = settings
        db.commit()
        db.refresh(provider)
        return provider

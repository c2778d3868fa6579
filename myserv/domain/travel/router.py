"""Travel router - travel cost preview"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .calculator import TravelPricingEngine
from .schemas import TravelQuoteRequest, TravelQuoteResponse
from .service import TravelQuoteService

router = APIRouter(prefix="/travel", tags=["Travel"])


def get_travel_engine() -> TravelPricingEngine:
    return TravelPricingEngine()


def get_travel_quote_service(
    db: Session = Depends(get_db),
    engine: TravelPricingEngine = Depends(get_travel_engine),
) -> TravelQuoteService:
    """Dependency injection for TravelQuoteService"""
    return TravelQuoteService(db, engine)


@router.post("/quote", response_model=TravelQuoteResponse)
async def quote_travel(
    data: TravelQuoteRequest,
    service: TravelQuoteService = Depends(get_travel_quote_service),
):
    """Preview the travel fee a provider would charge for a client location"""
    return await service.preview(data)

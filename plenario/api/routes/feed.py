"""
Global activity feed route
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends

from plenario.api.dependencies import get_data_service
from plenario.models.domain import FeedItem
from plenario.services.data_service import LegislativeDataService

router = APIRouter()


@router.get("/feed", response_model=List[FeedItem])
async def get_feed(
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Recent votes, proposals and events, newest first"""
    return await service.get_feed()

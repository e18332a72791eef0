"""
Parliamentarian listing, enrichment and prefetch routes
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from plenario.api.dependencies import get_data_service
from plenario.models.domain import Chamber, Party, Politician
from plenario.models.responses import PrefetchResponse
from plenario.services.data_service import LegislativeDataService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_entity(service: LegislativeDataService, entity_id: int) -> Politician:
    pol = await service.find_entity(entity_id)
    if pol is None:
        raise HTTPException(status_code=404, detail=f"Politician {entity_id} not found")
    return pol


@router.get("/politicians", response_model=List[Politician])
async def list_politicians(
    service: Annotated[LegislativeDataService, Depends(get_data_service)],
    chamber: Optional[Chamber] = Query(None, description="Filter by chamber"),
    state: Optional[str] = Query(None, description="Filter by state (UF)"),
    party: Optional[str] = Query(None, description="Filter by party acronym")
):
    """List deputies and senators with their minimal profile"""
    entities = await service.list_entities()
    if chamber:
        entities = [p for p in entities if p.chamber == chamber]
    if state:
        entities = [p for p in entities if p.state.upper() == state.upper()]
    if party:
        entities = [p for p in entities if p.party.upper() == party.upper()]
    return entities


@router.get("/politicians/{entity_id}/fast", response_model=Politician)
async def get_politician_fast(
    entity_id: int,
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Profile with identity and contact fields"""
    pol = await _require_entity(service, entity_id)
    return await service.enrich_fast(pol)


@router.get("/politicians/{entity_id}/full", response_model=Politician)
async def get_politician_full(
    entity_id: int,
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Profile with expenses, presence, votes, speeches and agenda"""
    pol = await _require_entity(service, entity_id)
    return await service.enrich_full(pol)


@router.post(
    "/politicians/{entity_id}/prefetch",
    response_model=PrefetchResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def prefetch_politician(
    entity_id: int,
    background_tasks: BackgroundTasks,
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Schedule a deduplicated full enrichment in the background"""
    pol = await _require_entity(service, entity_id)
    already_in_flight = entity_id in service.registry
    background_tasks.add_task(service.prefetch, pol)
    return PrefetchResponse(entity_id=entity_id, already_in_flight=already_in_flight)


@router.get("/parties", response_model=List[Party])
async def list_parties(
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Parties with ideology metadata; static list when the API is down"""
    return await service.list_parties()

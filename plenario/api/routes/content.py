"""
Educational content route
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends

from plenario.api.dependencies import get_data_service
from plenario.models.domain import EducationalArticle
from plenario.services.data_service import LegislativeDataService

router = APIRouter()


@router.get("/content/articles", response_model=List[EducationalArticle])
async def get_articles(
    service: Annotated[LegislativeDataService, Depends(get_data_service)]
):
    """Short explainer articles; static seed articles when generation is unavailable"""
    return await service.educational_content()

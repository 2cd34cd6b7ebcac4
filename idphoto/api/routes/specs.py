"""Specs API Routes.

Каталог форматов фото.
"""

from fastapi import APIRouter

from idphoto.core.dependencies import SpecCatalogDep
from idphoto.domain.models import SpecDef

router = APIRouter(tags=["specs"])


@router.get("/specs", summary="Список форматов фото")
async def list_specs(catalog: SpecCatalogDep) -> list[SpecDef]:
    """Все форматы фото на документы."""
    return catalog.specs

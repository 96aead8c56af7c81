from fastapi import APIRouter, Depends

from kpi_dashboard.core.config import Settings, get_settings
from kpi_dashboard.schemas.office import OfficeOut

router = APIRouter(prefix="/offices", tags=["offices"])


@router.get("", response_model=list[OfficeOut])
def list_offices(settings: Settings = Depends(get_settings)):
    return [
        OfficeOut(
            id=o.id,
            name=o.name,
            location=o.location,
            color=o.color,
            is_default=o.id == settings.DEFAULT_OFFICE,
        )
        for o in settings.OFFICES
    ]

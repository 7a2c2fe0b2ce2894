"""Developer view of the liveness flags. Hidden in production."""

from fastapi import APIRouter, Depends, HTTPException, status

from liveshop.api.dependencies import get_current_shop, get_settings_dep, get_stream_manager
from liveshop.application.workflows import StreamManager
from liveshop.core.config import Settings

router = APIRouter()


def require_non_production(settings: Settings = Depends(get_settings_dep)) -> None:
    if settings.is_production:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


@router.get("/liveness", dependencies=[Depends(require_non_production)])
async def liveness_overview(
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    return {"streams": await manager.liveness_overview(shop)}

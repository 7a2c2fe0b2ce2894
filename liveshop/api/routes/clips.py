"""Clip API routes."""

from fastapi import APIRouter, Depends, status

from liveshop.api.dependencies import get_clip_manager, get_current_shop
from liveshop.api.schemas.clips import ClipCreate, ClipListResponse, ClipResponse
from liveshop.application.workflows import ClipManager

router = APIRouter()


@router.post("/", response_model=ClipResponse, status_code=status.HTTP_201_CREATED)
async def create_clip(
    payload: ClipCreate,
    shop: str = Depends(get_current_shop),
    manager: ClipManager = Depends(get_clip_manager),
):
    """Cut a clip out of a recorded stream."""
    clip = await manager.create_clip(
        shop,
        payload.stream_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        title=payload.title,
        description=payload.description,
        product_id=payload.product_id,
    )
    return ClipResponse.from_domain(clip)


@router.get("/", response_model=ClipListResponse)
async def list_clips(
    shop: str = Depends(get_current_shop),
    manager: ClipManager = Depends(get_clip_manager),
):
    clips = await manager.list_clips(shop)
    return ClipListResponse(items=[ClipResponse.from_domain(c) for c in clips])

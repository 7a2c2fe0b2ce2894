"""Stream API routes.

Merchant actions on live shopping streams. Every route is scoped to the
shop resolved by ``get_current_shop``; streams of other shops are
reported as not found.
"""

from fastapi import APIRouter, Depends, Query, status

from liveshop.api.dependencies import (
    get_current_shop,
    get_lineup_manager,
    get_stream_manager,
)
from liveshop.api.schemas.streams import (
    AddProductsRequest,
    IngestResponse,
    LineupResponse,
    MoveProductRequest,
    StreamCreate,
    StreamDetailResponse,
    StreamListResponse,
    StreamProductResponse,
    StreamResponse,
    StreamStateResponse,
    StreamUpdate,
)
from liveshop.application.workflows import LineupManager, StreamManager

router = APIRouter()

CREATE_FIELDS = {"title", "product_ids", "variant_ids", "scheduled_at"}


def _lineup(stream_id: str, products) -> LineupResponse:
    return LineupResponse(
        stream_id=stream_id,
        products=[StreamProductResponse.from_domain(p) for p in products],
    )


@router.post("/", response_model=StreamDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_stream(
    payload: StreamCreate,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    """Draft a new stream with its product lineup."""
    detail = await manager.create_draft(
        shop,
        title=payload.title,
        product_ids=payload.product_ids,
        scheduled_at=payload.scheduled_at,
        variant_ids=payload.variant_ids,
        **payload.model_dump(exclude=CREATE_FIELDS),
    )
    return StreamDetailResponse.from_detail(detail)


@router.get("/", response_model=StreamListResponse)
async def list_streams(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    streams = await manager.list_streams(shop, limit=limit, offset=offset)
    return StreamListResponse(
        items=[StreamResponse.from_domain(s) for s in streams],
        limit=limit,
        offset=offset,
    )


@router.get("/{stream_id}", response_model=StreamDetailResponse)
async def get_stream(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    detail = await manager.get_detail(shop, stream_id)
    return StreamDetailResponse.from_detail(detail)


@router.patch("/{stream_id}", response_model=StreamResponse)
async def update_stream(
    stream_id: str,
    payload: StreamUpdate,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    """Edit title, schedule, tags and broadcast options."""
    stream = await manager.update_details(
        shop, stream_id, payload.model_dump(exclude_unset=True)
    )
    return StreamResponse.from_domain(stream)


@router.post("/{stream_id}/prepare", response_model=StreamResponse)
async def prepare_stream(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    """Create the ingest session the merchant's encoder will push to."""
    stream = await manager.prepare(shop, stream_id)
    return StreamResponse.from_domain(stream)


@router.get("/{stream_id}/ingest", response_model=IngestResponse)
async def get_ingest_credentials(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    credentials = await manager.ingest_credentials(shop, stream_id)
    return IngestResponse.from_credentials(credentials)


@router.post("/{stream_id}/start", response_model=StreamResponse)
async def start_stream(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    """Go live. The encoder feed must already be confirmed."""
    stream = await manager.start(shop, stream_id)
    return StreamResponse.from_domain(stream)


@router.post("/{stream_id}/end", response_model=StreamResponse)
async def end_stream(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    stream = await manager.end(shop, stream_id)
    return StreamResponse.from_domain(stream)


@router.get("/{stream_id}/state", response_model=StreamStateResponse)
async def get_stream_state(
    stream_id: str,
    shop: str = Depends(get_current_shop),
    manager: StreamManager = Depends(get_stream_manager),
):
    """Merged status for the operator UI, with the next poll delay."""
    snapshot = await manager.get_state(shop, stream_id)
    return StreamStateResponse.from_snapshot(snapshot)


@router.post("/{stream_id}/products", response_model=LineupResponse)
async def add_products(
    stream_id: str,
    payload: AddProductsRequest,
    shop: str = Depends(get_current_shop),
    lineup: LineupManager = Depends(get_lineup_manager),
):
    products = await lineup.add_products(shop, stream_id, payload.product_ids)
    return _lineup(stream_id, products)


@router.delete("/{stream_id}/products/{product_row_id}", response_model=LineupResponse)
async def remove_product(
    stream_id: str,
    product_row_id: str,
    shop: str = Depends(get_current_shop),
    lineup: LineupManager = Depends(get_lineup_manager),
):
    products = await lineup.remove_product(shop, stream_id, product_row_id)
    return _lineup(stream_id, products)


@router.post("/{stream_id}/products/{product_row_id}/move", response_model=LineupResponse)
async def move_product(
    stream_id: str,
    product_row_id: str,
    payload: MoveProductRequest,
    shop: str = Depends(get_current_shop),
    lineup: LineupManager = Depends(get_lineup_manager),
):
    products = await lineup.move_product(
        shop, stream_id, product_row_id, payload.direction
    )
    return _lineup(stream_id, products)


@router.post(
    "/{stream_id}/products/{product_row_id}/feature",
    response_model=StreamProductResponse,
)
async def feature_product(
    stream_id: str,
    product_row_id: str,
    shop: str = Depends(get_current_shop),
    lineup: LineupManager = Depends(get_lineup_manager),
):
    """Spotlight a product while the stream is live."""
    product = await lineup.feature_product(shop, stream_id, product_row_id)
    return StreamProductResponse.from_domain(product)

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from movequote.core.logger import get_logger
from movequote.models.promo import PromoListResponse, PromoSaveRequest
from movequote.services.promo_service import check_promo_input, normalize_promo_input, validate_promo
from movequote.services.store import store

promo_router = APIRouter(prefix="/promo-codes", tags=["Promo Codes"])
logger = get_logger(__name__)

MAX_LIST_LIMIT = 500


@promo_router.get("")
async def get_promo_codes(
    code: str = "",
    mode: str = "",
    q: str = "",
    limit: int = 50,
    offset: int = 0,
    list_flag: Optional[str] = Query(None, alias="list"),
):
    """
    Validate one code (``?code=``) or page through stored codes (``?mode=list``).
    """
    if mode.strip().lower() == "list" or list_flag == "1":
        limit = max(1, min(MAX_LIST_LIMIT, limit))
        offset = max(0, offset)
        promos, total = await store.list_promos(q, limit, offset)
        return PromoListResponse(promos=promos, count=total, limit=limit, offset=offset)

    result = await validate_promo(code, store.get_promo)
    body = result.model_dump(by_alias=True, exclude_none=True)
    if result.reason == "missing_code":
        return JSONResponse(status_code=400, content=body)
    if result.reason == "server_error":
        return JSONResponse(status_code=500, content=body)
    return body


@promo_router.post("")
async def save_promo_codes(payload: PromoSaveRequest):
    if not payload.promos:
        raise HTTPException(status_code=400, detail="No promo codes provided")

    normalized = [normalize_promo_input(p) for p in payload.promos]
    normalized = [p for p in normalized if p.code]
    if not normalized:
        raise HTTPException(status_code=400, detail="No valid promo codes provided")

    for promo in normalized:
        error = check_promo_input(promo)
        if error:
            raise HTTPException(status_code=400, detail=error)

    saved = await store.upsert_promos(normalized)
    logger.info(f"Saved {saved} promo codes")
    return {"success": True, "saved": saved}

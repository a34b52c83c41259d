from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from movequote.models.estimate import EstimateRequest, EstimateResponse
from movequote.models.pricing import resolve_rate_config
from movequote.services.estimate_engine import compute_estimate
from movequote.services.store import store
from movequote.services.summary import format_estimate_range

estimate_router = APIRouter(prefix="/estimate", tags=["Estimate"])


@estimate_router.post("", response_model=EstimateResponse)
async def estimate(payload: EstimateRequest):
    """
    Price a selection without opening a wizard session.
    """
    if payload.widget_id:
        widget = await store.get_widget(payload.widget_id)
        if widget is None:
            raise HTTPException(status_code=404, detail="Widget not found")
        rates = widget.pricing
    else:
        try:
            rates = resolve_rate_config(payload.pricing)
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid pricing configuration")

    result = compute_estimate(rates, payload.selection)
    return EstimateResponse(
        estimate=result,
        label=format_estimate_range(result.min_total, result.max_total),
        discounted_label=format_estimate_range(result.discounted_min_total, result.discounted_max_total),
    )

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from movequote.core.logger import get_logger
from movequote.models.widget import WidgetListResponse, WidgetResponse, WidgetSaveRequest
from movequote.services.store import store

widget_router = APIRouter(prefix="/widgets", tags=["Widgets"])
logger = get_logger(__name__)


@widget_router.get("", response_model=WidgetListResponse)
async def list_widgets():
    widgets = await store.list_widgets()
    return WidgetListResponse(count=len(widgets), widgets=widgets)


@widget_router.post("", response_model=WidgetResponse)
async def create_widget(payload: WidgetSaveRequest):
    try:
        widget = await store.save_widget(payload)
    except ValidationError as e:
        logger.warning(f"Rejected widget pricing: {e}")
        raise HTTPException(status_code=400, detail="Invalid pricing configuration")
    return WidgetResponse(widget=widget)


@widget_router.get("/{widget_id}", response_model=WidgetResponse)
async def get_widget(widget_id: str):
    """
    Widget branding plus its fully resolved pricing table.
    """
    widget = await store.get_widget(widget_id)
    if widget is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    return WidgetResponse(widget=widget)


@widget_router.put("/{widget_id}", response_model=WidgetResponse)
async def update_widget(widget_id: str, payload: WidgetSaveRequest):
    """
    Explicit save of branding and pricing. Pricing is left as stored when
    the body omits it.
    """
    if await store.get_widget(widget_id) is None:
        raise HTTPException(status_code=404, detail="Widget not found")

    logger.info(f"Updating widget {widget_id}, pricing provided: {payload.pricing is not None}")
    try:
        widget = await store.save_widget(payload, widget_id=widget_id)
    except ValidationError as e:
        logger.warning(f"Rejected widget pricing for {widget_id}: {e}")
        raise HTTPException(status_code=400, detail="Invalid pricing configuration")
    return WidgetResponse(widget=widget)

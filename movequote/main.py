from fastapi import FastAPI
from movequote.routes.widget_router import widget_router
from movequote.routes.location_router import location_router
from movequote.routes.promo_router import promo_router
from movequote.routes.booking_router import booking_router
from movequote.routes.estimate_router import estimate_router
from movequote.routes.wizard_router import wizard_router
from contextlib import asynccontextmanager
from movequote.core.logger import get_logger
from movequote.core.middleware import log_requests
from movequote.wizard.session import registry
from fastapi.middleware.cors import CORSMiddleware

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):

    logger.info(" Application startup complete")

    yield

    await registry.close_all()
    logger.info(" Application shutdown initiated")

app = FastAPI(lifespan=lifespan)
# the widget is embedded on operator sites
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)
app.include_router(widget_router)
app.include_router(location_router)
app.include_router(promo_router)
app.include_router(booking_router)
app.include_router(estimate_router)
app.include_router(wizard_router)

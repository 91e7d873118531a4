import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from app.config import get_settings, reload_settings

reload_settings()
from app.database import get_pool, close_pool
from app.modules.whatsapp.webhook import router as whatsapp_router
from app.modules.leads.webhook import router as typebot_router
from app.modules.scheduling.webhook import router as calendly_router, api_router as scheduling_router
from app.admin.api import router as admin_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    postgres = get_settings().storage_backend == "postgres"
    if postgres:
        await get_pool()
    yield
    if postgres:
        await close_pool()


settings = get_settings()
logging.getLogger().setLevel(settings.log_level.upper())

app = FastAPI(
    title="SDR Orchestrator",
    description="WhatsApp sales assistant for BS Consultoria de Imóveis",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(whatsapp_router, prefix="/whatsapp", tags=["whatsapp"])
app.include_router(typebot_router, prefix="/typebot", tags=["typebot"])
app.include_router(calendly_router, prefix="/calendly", tags=["calendly"])
app.include_router(scheduling_router, prefix="/api", tags=["scheduling"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.environment}

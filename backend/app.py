from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import config
from backend.routers import presentation
from backend.session import presentation_manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release every layer the engine owns before the process exits
    await presentation_manager.close()


app = FastAPI(
    title="GeoVision API",
    description="Navigation and scene export for the GeoVision survey presentation",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS -- allow the viewer front end
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(presentation.router)


@app.get("/")
async def root():
    return {"status": "ok", "service": "GeoVision API"}

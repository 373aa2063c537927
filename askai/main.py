from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from askai.api.routes import messages
from askai.config import settings
from askai.services import logger as log_service
from askai.services.prompt_store import check_catalog


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_catalog()
    log_service.log_event("startup", "askai API ready", cache_backend=settings.cache_backend, model=settings.model)
    yield


app = FastAPI(
    title="askai",
    description="Search-grounded answers with numbered citations",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(messages.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "askai"}

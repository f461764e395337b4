# arpolar_core/webapp/app.py
from __future__ import annotations

import logging
import os
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse

from .api import router as api_router
from .container import ServiceContainer
from ..config import DEFAULT_CONFIG_PATH
from ..service import OrgChartService

load_dotenv()


def create_app(
    *,
    config_path: str | None = None,
    state_path: str | None = None,
    service: OrgChartService | None = None,
) -> FastAPI:
    """Cria a aplicacao FastAPI do organograma."""

    logging.basicConfig(
        level=os.environ.get("ARPOLAR_LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    app_logger = logging.getLogger("arpolar_webapp")
    app_logger.info("=== INICIANDO ARPOLAR CORE WEBAPP ===")

    app = FastAPI(
        title="Arpolar Core API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        description="API do organograma, contratos e ocorrencias da Arpolar",
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        app_logger.info("[HTTP] %s %s", request.method, request.url)
        response = await call_next(request)
        duration = time.time() - start_time
        app_logger.info("[HTTP] Resposta: %d em %.3f segundos", response.status_code, duration)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    # Avatares embutidos e a arvore inteira podem ser grandes.
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    app_logger.info("[INIT] Config path: %s", config_path or str(DEFAULT_CONFIG_PATH))
    container = ServiceContainer(config_path=config_path, state_path=state_path, service=service)
    app.state.container = container
    app_logger.info("[INIT] Estado em %s", getattr(container.service.storage.store, "path", "memoria"))

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Endpoint de verificacao de saude da aplicacao."""
        return {"status": "ok", "message": "Arpolar Core API esta funcionando"}

    @app.get("/")
    def root() -> RedirectResponse:
        return RedirectResponse(url="/docs", status_code=302)

    app_logger.info("=== ARPOLAR CORE WEBAPP INICIALIZADO ===")
    return app

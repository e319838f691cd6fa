"""
Mapa de Clientes - API de leitura (FastAPI)
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mapa_clientes.core.config import get_settings
from mapa_clientes.core.database import init_db, close_db
from mapa_clientes.api.routes import clientes_router, sync_router

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerenciamento do ciclo de vida da aplicação"""
    logger.info("=" * 80)
    logger.info(f"[STARTUP] Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"[STARTUP] CORS Origins: {settings.allowed_origins_list}")
    try:
        init_db()
        logger.info("[STARTUP] ✓ Banco de dados inicializado com sucesso")
    except Exception as e:
        logger.error(f"[STARTUP] ✗ Erro ao inicializar banco de dados: {e}", exc_info=True)
        raise
    logger.info("=" * 80)
    yield

    logger.info("[SHUTDOWN] Encerrando aplicação...")
    close_db()
    logger.info("[SHUTDOWN] ✓ Aplicação encerrada")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Mapa de Clientes API

    Leitura dos clientes sincronizados do Odoo, com coordenadas e equipamentos.

    ### Funcionalidades:
    - 🗺️ Clientes geocodificados para o mapa
    - 🔧 Equipamentos por cliente
    - ⏸️ Estado da sincronização (cursor e pausa)
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handler geral de exceções"""
    logger.error(f"Erro não tratado: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Erro interno do servidor",
            "message": str(exc) if settings.DEBUG else "Ocorreu um erro inesperado",
        },
    )


app.include_router(clientes_router)
app.include_router(sync_router)


@app.get("/health", tags=["Health"])
def health_check():
    """Verificação de saúde da aplicação"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }

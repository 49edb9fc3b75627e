import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from consignacao.config import settings
from consignacao.core.exceptions import setup_error_handling
from consignacao.api.routes import faixas, consignacoes, acertos, faturas

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Erros de dominio -> {"detail": ...}
setup_error_handling(app)


# Rota de health check
@app.get("/health")
def health_check():
    """Health check para monitoramento"""
    return {"status": "healthy"}


@app.get(f"{settings.API_V1_STR}/jobs/status")
def jobs_status():
    """Situacao do scheduler do acerto"""
    from consignacao.jobs.acerto_job import status_scheduler
    return status_scheduler()


# Incluir routers
app.include_router(faixas.router, prefix=f"{settings.API_V1_STR}/faixas", tags=["faixas"])
app.include_router(consignacoes.router, prefix=f"{settings.API_V1_STR}/consignacoes", tags=["consignacoes"])
app.include_router(acertos.router, prefix=f"{settings.API_V1_STR}/acertos", tags=["acertos"])
app.include_router(faturas.router, prefix=f"{settings.API_V1_STR}/faturas", tags=["faturas"])


# Evento de startup (tabelas e jobs agendados)
@app.on_event("startup")
def startup_event():
    logger.info(f"[STARTUP] {settings.PROJECT_NAME} iniciado!")
    logger.info(f"[STARTUP] Ambiente: {settings.ENVIRONMENT}")

    from consignacao.database import engine
    from consignacao.models import Base
    Base.metadata.create_all(bind=engine)
    logger.info("[STARTUP] Tabelas do banco de dados criadas/verificadas!")

    # Pode ser desabilitado com ENABLE_SCHEDULED_JOBS=false
    if settings.ENABLE_SCHEDULED_JOBS:
        from consignacao.jobs.acerto_job import iniciar_scheduler
        iniciar_scheduler(intervalo_minutos=settings.ACERTO_JOB_INTERVALO_MINUTOS)


@app.on_event("shutdown")
def shutdown_event():
    from consignacao.jobs.acerto_job import parar_scheduler
    parar_scheduler()
    logger.info("[SHUTDOWN] Sistema encerrado!")

"""
Portal Calma - Backend FastAPI
Ponto de entrada da aplicação
"""
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from portal_calma import config
from portal_calma.api import questionnaires

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(
    title="Portal Calma API",
    description="Métricas e gestão de questionários de bem-estar das empresas",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# CORS - permite acesso do painel web
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(questionnaires.router, prefix="/api/questionnaires", tags=["Questionários"])


@app.get("/")
async def root():
    return {
        "message": "Portal Calma API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/api/docs"
    }


@app.get("/api/health")
async def health_check():
    """Verificação de saúde"""
    return {"status": "healthy", "service": "portal-calma-api", "backend": config.ROW_BACKEND}


if __name__ == "__main__":
    uvicorn.run(
        "portal_calma.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )

# taller/api/router.py
from fastapi import APIRouter, Request

from taller.api import herramientas as herramientas_api
from taller.api import materials as materials_api
from taller.api import pedidos as pedidos_api
from taller.api import reparaciones as reparaciones_api

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
async def health_check(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": "0.1.0",
        "service": settings.PROJECT_NAME,
    }

api_router.include_router(materials_api.router)
api_router.include_router(herramientas_api.router)
api_router.include_router(reparaciones_api.router)
api_router.include_router(pedidos_api.router)

# taller/api/herramientas.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taller.db.deps import get_db, get_usuario_actual
from taller.models import HerramientaEstatus
from taller.services import herramienta_service

router = APIRouter(prefix="/herramientas", tags=["herramientas"])


class HerramientaCreate(BaseModel):
    nombre: str
    descripcion: str | None = None
    cantidad_total: int


class StockUpdate(BaseModel):
    nueva_cantidad: int


class AsignacionIn(BaseModel):
    usuario_asignado: str


class HerramientaOut(BaseModel):
    id: int
    nombre: str
    descripcion: str | None = None
    cantidad_total: int
    cantidad_disponible: int
    estatus: HerramientaEstatus
    usuario_asignado: str | None = None
    asignado_por: str | None = None
    fecha_asignacion: datetime | None = None
    activo: bool

    class Config:
        from_attributes = True


@router.get("/", response_model=List[HerramientaOut])
def list_herramientas(
    buscar: str | None = None,
    estatus: HerramientaEstatus | None = None,
    db: Session = Depends(get_db),
):
    return herramienta_service.list_herramientas(db, buscar=buscar, estatus=estatus)


@router.post("/", response_model=HerramientaOut, status_code=201)
def create_herramienta(
    herramienta_in: HerramientaCreate,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    return herramienta_service.create_herramienta(
        db, **herramienta_in.model_dump(), creado_por=usuario
    )


# Las rutas aceptan id numérico o nombre exacto.
@router.get("/{id_o_nombre}", response_model=HerramientaOut)
def get_herramienta(id_o_nombre: str, db: Session = Depends(get_db)):
    return herramienta_service.get_herramienta(db, id_o_nombre)


@router.put("/{id_o_nombre}/stock", response_model=HerramientaOut)
def update_stock(id_o_nombre: str, stock_in: StockUpdate, db: Session = Depends(get_db)):
    return herramienta_service.update_stock(db, id_o_nombre, stock_in.nueva_cantidad)


@router.post("/{id_o_nombre}/asignar", response_model=HerramientaOut)
def assign(
    id_o_nombre: str,
    asignacion_in: AsignacionIn,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    return herramienta_service.assign(
        db,
        id_o_nombre,
        usuario_asignado=asignacion_in.usuario_asignado,
        asignado_por=usuario,
    )


@router.post("/{id_o_nombre}/devolver", response_model=HerramientaOut)
def return_herramienta(id_o_nombre: str, db: Session = Depends(get_db)):
    return herramienta_service.return_herramienta(db, id_o_nombre)


@router.delete("/{id_o_nombre}", status_code=204)
def delete_herramienta(id_o_nombre: str, db: Session = Depends(get_db)):
    herramienta_service.delete_herramienta(db, id_o_nombre)

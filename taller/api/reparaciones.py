# taller/api/reparaciones.py
from datetime import date, datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taller.db.deps import get_db, get_usuario_actual
from taller.models import Prioridad, ReparacionEstado
from taller.services import reparacion_service

router = APIRouter(prefix="/reparaciones", tags=["reparaciones"])


class ReparacionBase(BaseModel):
    nombre_cliente: str
    contacto: str | None = None
    modelo: str
    material_original: str | None = None
    condicion: str | None = None
    materiales_usados: str | None = None
    costo_total: Decimal = Decimal("0")
    anticipo: Decimal = Decimal("0")
    piezas: int = 1
    fecha_ingreso: date | None = None
    fecha_entrega: date | None = None
    prioridad: Prioridad | None = None
    notas: str | None = None
    trabajador_asignado: str | None = None
    imagen_url: str | None = None
    recibo_url: str | None = None


class ReparacionCreate(ReparacionBase):
    # el estado se valida en el servicio para devolver el mensaje con las opciones
    estado: str | None = None


class ReparacionUpdate(ReparacionCreate):
    pass


class CambioEstadoIn(BaseModel):
    estado: str
    notas: str | None = None


class ReparacionOut(ReparacionBase):
    id: int
    estado: ReparacionEstado
    prioridad: Prioridad
    fecha_ingreso: date
    creado_por: str
    fecha_registro: datetime
    saldo_pendiente: Decimal = Decimal("0")

    class Config:
        from_attributes = True


class HistorialOut(BaseModel):
    id: int
    reparacion_id: int
    fecha: date
    estado_anterior: ReparacionEstado | None = None
    estado: ReparacionEstado
    notas: str | None = None
    usuario_id: str | None = None
    fecha_registro: datetime

    class Config:
        from_attributes = True


class MaterialReciboOut(BaseModel):
    materia_id: int
    cantidad: int
    costo_unitario: Decimal
    costo_total: Decimal


class ReciboOut(BaseModel):
    numero_recibo: str
    fecha_emision: datetime
    reparacion_id: int
    cliente: str
    contacto: str | None = None
    modelo: str
    descripcion: str | None = None
    piezas: int
    costo_total: Decimal
    anticipo: Decimal
    saldo_pendiente: Decimal
    estado: str
    fecha_ingreso: date
    fecha_entrega: date | None = None
    trabajador_asignado: str | None = None
    costo_materiales: Decimal
    materiales: List[MaterialReciboOut]
    recibo_url: str | None = None


def _out(reparacion) -> ReparacionOut:
    out = ReparacionOut.model_validate(reparacion)
    out.saldo_pendiente = reparacion_service.pending_balance(reparacion)
    return out


@router.get("/", response_model=List[ReparacionOut])
def list_reparaciones(
    estado: str | None = None,
    cliente: str | None = None,
    modelo: str | None = None,
    db: Session = Depends(get_db),
):
    reparaciones = reparacion_service.list_reparaciones(
        db, estado=estado, cliente=cliente, modelo=modelo
    )
    return [_out(r) for r in reparaciones]


@router.post("/", response_model=ReparacionOut, status_code=201)
def create_reparacion(
    reparacion_in: ReparacionCreate,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    reparacion = reparacion_service.create_reparacion(
        db, creado_por=usuario, **reparacion_in.model_dump()
    )
    return _out(reparacion)


@router.get("/{reparacion_id}", response_model=ReparacionOut)
def get_reparacion(reparacion_id: int, db: Session = Depends(get_db)):
    return _out(reparacion_service.get_reparacion(db, reparacion_id))


@router.put("/{reparacion_id}", response_model=ReparacionOut)
def update_reparacion(
    reparacion_id: int,
    reparacion_in: ReparacionUpdate,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    data = reparacion_in.model_dump()
    reparacion = reparacion_service.update_reparacion(db, reparacion_id, usuario_id=usuario, **data)
    return _out(reparacion)


@router.put("/{reparacion_id}/estado", response_model=ReparacionOut)
def change_estado(
    reparacion_id: int,
    cambio_in: CambioEstadoIn,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    reparacion = reparacion_service.change_estado(
        db, reparacion_id, cambio_in.estado, usuario_id=usuario, notas=cambio_in.notas
    )
    return _out(reparacion)


@router.get("/{reparacion_id}/historial", response_model=List[HistorialOut])
def list_historial(reparacion_id: int, db: Session = Depends(get_db)):
    return reparacion_service.list_historial(db, reparacion_id)


@router.get("/{reparacion_id}/recibo", response_model=ReciboOut)
def generate_recibo(reparacion_id: int, db: Session = Depends(get_db)):
    return reparacion_service.generate_recibo(db, reparacion_id)


@router.delete("/{reparacion_id}", status_code=204)
def delete_reparacion(reparacion_id: int, db: Session = Depends(get_db)):
    reparacion_service.delete_reparacion(db, reparacion_id)

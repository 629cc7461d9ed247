# taller/api/pedidos.py
from datetime import date, datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taller.db.deps import get_db
from taller.services import pedido_service

router = APIRouter(prefix="/pedidos", tags=["pedidos"])


class PedidoProductoIn(BaseModel):
    producto_id: int | None = None
    producto_nombre: str
    cantidad: int
    precio_unitario: Decimal = Decimal("0")


class PedidoCreate(BaseModel):
    cliente_nombre: str
    cliente_contacto: str | None = None
    fecha_entrega: date | None = None
    notas: str | None = None
    total: Decimal
    anticipo: Decimal = Decimal("0")
    etapa: str | None = None
    productos: List[PedidoProductoIn]


class EtapaIn(BaseModel):
    etapa: str
    notas: str | None = None


class PedidoProductoOut(BaseModel):
    id: int
    producto_id: int | None = None
    producto_nombre: str
    cantidad: int
    precio_unitario: Decimal
    subtotal: Decimal
    orden: int | None = None

    class Config:
        from_attributes = True


class PedidoOut(BaseModel):
    id: int
    cliente_nombre: str
    cliente_contacto: str | None = None
    fecha_entrega: date | None = None
    notas: str | None = None
    etapa: str
    total: Decimal
    anticipo: Decimal
    total_cantidad: int
    resumen_producto: str | None = None
    creado_por: str
    fecha_creacion: datetime
    productos: List[PedidoProductoOut] = []

    class Config:
        from_attributes = True


class PedidoEtapaOut(BaseModel):
    id: int
    etapa: str
    notas: str | None = None
    usuario: str
    fecha_registro: datetime

    class Config:
        from_attributes = True


class VentaOut(BaseModel):
    id: int
    pedido_id: int | None = None
    producto_id: int | None = None
    producto_nombre: str | None = None
    cantidad: int
    precio_unitario: Decimal
    precio_total: Decimal
    fecha: date
    tipo: str

    class Config:
        from_attributes = True


@router.get("/", response_model=List[PedidoOut])
def list_pedidos(fecha: str | None = None, db: Session = Depends(get_db)):
    if fecha is not None:
        return pedido_service.list_by_fecha(db, fecha)
    return pedido_service.list_pedidos(db)


@router.post("/", response_model=PedidoOut, status_code=201)
def create_pedido(
    request: Request,
    pedido_in: PedidoCreate,
    db: Session = Depends(get_db),
    x_usuario: str | None = Header(None, alias="X-Usuario"),
):
    # sin usuario el pedido queda a nombre de "admin"
    data = pedido_in.model_dump()
    return pedido_service.create_pedido(
        db,
        **data,
        creado_por=x_usuario,
        settings=request.app.state.settings,
    )


@router.get("/{pedido_id}", response_model=PedidoOut)
def get_pedido(pedido_id: int, db: Session = Depends(get_db)):
    return pedido_service.get_pedido(db, pedido_id)


@router.put("/{pedido_id}/etapa", response_model=PedidoOut)
def advance_etapa(
    request: Request,
    pedido_id: int,
    etapa_in: EtapaIn,
    db: Session = Depends(get_db),
):
    return pedido_service.advance_etapa(
        db,
        pedido_id,
        etapa_in.etapa,
        etapa_in.notas,
        settings=request.app.state.settings,
    )


@router.get("/{pedido_id}/etapas", response_model=List[PedidoEtapaOut])
def list_etapas(pedido_id: int, db: Session = Depends(get_db)):
    return pedido_service.list_etapas(db, pedido_id)


@router.get("/{pedido_id}/ventas", response_model=List[VentaOut])
def list_ventas(pedido_id: int, db: Session = Depends(get_db)):
    pedido_service.get_pedido(db, pedido_id)
    return pedido_service.list_ventas(db, pedido_id)


@router.delete("/{pedido_id}", status_code=204)
def delete_pedido(pedido_id: int, db: Session = Depends(get_db)):
    pedido_service.delete_pedido(db, pedido_id)

# taller/api/materials.py
from datetime import date, datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from taller.db.deps import get_db, get_usuario_actual
from taller.models import TipoDocumento, TipoMovimiento
from taller.services import stock_service, usage_service

router = APIRouter(prefix="/materials", tags=["materials"])


class MaterialBase(BaseModel):
    nombre: str
    descripcion: str | None = None
    unidad: str
    stock_minimo: int = 0
    costo: Decimal = Decimal("0")
    categoria: str


class MaterialCreate(MaterialBase):
    cantidad: int = 0


class MaterialUpdate(BaseModel):
    nombre: str | None = None
    descripcion: str | None = None
    unidad: str | None = None
    stock_minimo: int | None = None
    costo: Decimal | None = None
    categoria: str | None = None


class StockUpdate(BaseModel):
    nueva_cantidad: int
    nota: str | None = None


class MaterialOut(MaterialBase):
    id: int
    cantidad: int
    activo: bool
    bajo_stock: bool
    creado_por: str | None = None
    fecha_creacion: datetime

    class Config:
        from_attributes = True


class MovimientoOut(BaseModel):
    id: int
    materia_id: int
    fecha: date
    tipo: TipoMovimiento
    cantidad: int
    usuario_id: str | None = None
    nota: str | None = None
    fecha_registro: datetime

    class Config:
        from_attributes = True


class BalanceOut(BaseModel):
    material_id: int
    cantidad: int
    saldo_libro: int
    movimientos: int
    consistente: bool


class ConsumoIn(BaseModel):
    tipo_documento: TipoDocumento
    documento_id: int
    materia_id: int
    cantidad: int
    costo_unitario: Decimal | None = None
    # False: solo atribuye el consumo; True: además descuenta la existencia
    descontar_stock: bool = False


class ConsumoOut(BaseModel):
    id: int
    tipo_documento: TipoDocumento
    documento_id: int
    materia_id: int
    cantidad: int
    costo_unitario: Decimal
    costo_total: Decimal
    fecha: date
    usuario_id: str | None = None
    fecha_registro: datetime

    class Config:
        from_attributes = True


class CostoDocumentoOut(BaseModel):
    tipo_documento: TipoDocumento
    documento_id: int
    costo_total: Decimal
    consumos: List[ConsumoOut]


@router.get("/", response_model=List[MaterialOut])
def list_materials(
    buscar: str | None = None,
    categoria: str | None = None,
    db: Session = Depends(get_db),
):
    return stock_service.list_materiales(db, buscar=buscar, categoria=categoria)


@router.get("/bajo-stock", response_model=List[MaterialOut])
def list_low_stock(db: Session = Depends(get_db)):
    return stock_service.list_bajo_stock(db)


@router.post("/", response_model=MaterialOut, status_code=201)
def create_material(
    material_in: MaterialCreate,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    return stock_service.create_material(db, **material_in.model_dump(), creado_por=usuario)


@router.post("/consumos", response_model=ConsumoOut, status_code=201)
def register_consumo(
    consumo_in: ConsumoIn,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    data = consumo_in.model_dump()
    descontar = data.pop("descontar_stock")
    if descontar:
        return usage_service.consume_material(db, **data, usuario_id=usuario)
    if data["costo_unitario"] is None:
        data["costo_unitario"] = Decimal("0")
    return usage_service.record_usage(db, **data, usuario_id=usuario)


@router.get("/consumos/{tipo_documento}/{documento_id}", response_model=CostoDocumentoOut)
def consumos_por_documento(
    tipo_documento: TipoDocumento,
    documento_id: int,
    db: Session = Depends(get_db),
):
    consumos = usage_service.usage_for_document(db, tipo_documento, documento_id)
    return {
        "tipo_documento": tipo_documento,
        "documento_id": documento_id,
        "costo_total": sum((c.costo_total for c in consumos), Decimal("0")),
        "consumos": consumos,
    }


@router.delete("/consumos/{usage_id}", status_code=204)
def delete_consumo(usage_id: int, db: Session = Depends(get_db)):
    usage_service.delete_usage(db, usage_id)


@router.get("/{material_id}", response_model=MaterialOut)
def get_material(material_id: int, db: Session = Depends(get_db)):
    return stock_service.get_material(db, material_id)


@router.put("/{material_id}", response_model=MaterialOut)
def update_material(
    material_id: int,
    material_in: MaterialUpdate,
    db: Session = Depends(get_db),
):
    data = material_in.model_dump(exclude_unset=True)
    return stock_service.edit_material(db, material_id, **data)


@router.put("/{material_id}/stock", response_model=MaterialOut)
def update_stock(
    material_id: int,
    stock_in: StockUpdate,
    db: Session = Depends(get_db),
    usuario: str = Depends(get_usuario_actual),
):
    return stock_service.update_stock(
        db,
        material_id,
        nueva_cantidad=stock_in.nueva_cantidad,
        usuario_id=usuario,
        nota=stock_in.nota,
    )


@router.get("/{material_id}/movimientos", response_model=List[MovimientoOut])
def list_movimientos(material_id: int, db: Session = Depends(get_db)):
    return stock_service.list_history(db, material_id)


@router.get("/{material_id}/balance", response_model=BalanceOut)
def ledger_balance(material_id: int, db: Session = Depends(get_db)):
    return stock_service.ledger_balance(db, material_id)


@router.delete("/{material_id}", status_code=204)
def delete_material(material_id: int, db: Session = Depends(get_db)):
    stock_service.delete_material(db, material_id)

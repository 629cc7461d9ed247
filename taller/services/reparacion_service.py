# taller/services/reparacion_service.py
"""
Flujo de reparaciones.

Los estados son un catálogo fijo pero no hay orden obligatorio entre ellos:
se puede regresar de "Entregado" a "En Proceso" si hace falta. Cada cambio
de estado (incluida la creación) deja un renglón en historial_reparaciones
dentro de la misma transacción.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from taller.core.errors import NotFoundError, ValidationError
from taller.core.logging_config import get_logger
from taller.db.session import unit_of_work
from taller.models import (
    HistorialReparacion,
    Prioridad,
    Reparacion,
    ReparacionEstado,
    TipoDocumento,
)
from taller.services import usage_service
from taller.services.material_parser import validar_materiales_usados

logger = get_logger("services.reparacion")

MATERIAL_ORIGINAL_POR_DEFECTO = "Yeso frio"
CREADO_POR_DEFECTO = "Sistema"

# Campos que reemplaza update_reparacion.
CAMPOS_MUTABLES = (
    "nombre_cliente",
    "contacto",
    "modelo",
    "material_original",
    "condicion",
    "materiales_usados",
    "costo_total",
    "anticipo",
    "piezas",
    "fecha_ingreso",
    "fecha_entrega",
    "estado",
    "prioridad",
    "notas",
    "trabajador_asignado",
    "imagen_url",
    "recibo_url",
)


def _estado(value: ReparacionEstado | str) -> ReparacionEstado:
    try:
        return ReparacionEstado(value)
    except ValueError:
        opciones = ", ".join(e.value for e in ReparacionEstado)
        raise ValidationError(f"Estado no valido. Use: {opciones}", field="estado")


def _prioridad(value: Prioridad | str | None) -> Prioridad:
    if value is None:
        return Prioridad.media
    try:
        return Prioridad(value)
    except ValueError:
        opciones = ", ".join(p.value for p in Prioridad)
        raise ValidationError(f"Prioridad no valida. Use: {opciones}", field="prioridad")


def _money(value, field: str, label: str) -> Decimal:
    try:
        dec = Decimal(str(value if value is not None else 0))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} debe ser numérico", field=field)
    if not dec.is_finite() or dec < 0:
        raise ValidationError(f"{label} no puede ser negativo", field=field)
    return dec


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _validated(datos: dict) -> dict:
    """Normaliza y valida los campos de captura. No toca la base."""
    nombre_cliente = (datos.get("nombre_cliente") or "").strip()
    if not nombre_cliente:
        raise ValidationError("El nombre del cliente es requerido", field="nombre_cliente")
    modelo = (datos.get("modelo") or "").strip()
    if not modelo:
        raise ValidationError("El modelo es requerido", field="modelo")

    piezas = datos.get("piezas")
    if piezas is None:
        piezas = 1
    if isinstance(piezas, bool) or not isinstance(piezas, int) or piezas < 1:
        raise ValidationError("Las piezas deben ser al menos 1", field="piezas")

    materiales_usados = _clean(datos.get("materiales_usados"))
    # Solo valida; los errores de unidades fijas cortan la captura.
    validar_materiales_usados(materiales_usados)

    return {
        "nombre_cliente": nombre_cliente,
        "contacto": _clean(datos.get("contacto")),
        "modelo": modelo,
        "material_original": _clean(datos.get("material_original")) or MATERIAL_ORIGINAL_POR_DEFECTO,
        "condicion": _clean(datos.get("condicion")),
        "materiales_usados": materiales_usados,
        "costo_total": _money(datos.get("costo_total"), "costo_total", "El costo total"),
        "anticipo": _money(datos.get("anticipo"), "anticipo", "El anticipo"),
        "piezas": piezas,
        "fecha_ingreso": datos.get("fecha_ingreso") or date.today(),
        "fecha_entrega": datos.get("fecha_entrega"),
        "estado": _estado(datos.get("estado") or ReparacionEstado.pendiente),
        "prioridad": _prioridad(datos.get("prioridad")),
        "notas": _clean(datos.get("notas")),
        "trabajador_asignado": _clean(datos.get("trabajador_asignado")),
        "imagen_url": _clean(datos.get("imagen_url")),
        "recibo_url": _clean(datos.get("recibo_url")),
    }


def _append_historial(
    db: Session,
    reparacion: Reparacion,
    *,
    estado_anterior: ReparacionEstado | None,
    estado: ReparacionEstado,
    usuario_id: str | None,
    notas: str | None = None,
) -> HistorialReparacion:
    row = HistorialReparacion(
        reparacion_id=reparacion.id,
        fecha=date.today(),
        estado_anterior=estado_anterior,
        estado=estado,
        notas=_clean(notas),
        usuario_id=usuario_id,
    )
    db.add(row)
    return row


def get_reparacion(db: Session, reparacion_id: int) -> Reparacion:
    reparacion = (
        db.query(Reparacion)
        .filter(Reparacion.id == reparacion_id, Reparacion.activo.is_(True))
        .first()
    )
    if reparacion is None:
        raise NotFoundError("Reparación", reparacion_id)
    return reparacion


def list_reparaciones(
    db: Session,
    *,
    estado: ReparacionEstado | str | None = None,
    cliente: str | None = None,
    modelo: str | None = None,
) -> list[Reparacion]:
    query = db.query(Reparacion).filter(Reparacion.activo.is_(True))
    if estado:
        query = query.filter(Reparacion.estado == _estado(estado))
    if cliente:
        query = query.filter(Reparacion.nombre_cliente.ilike(f"%{cliente.strip()}%"))
    if modelo:
        query = query.filter(Reparacion.modelo.ilike(f"%{modelo.strip()}%"))
    return query.order_by(Reparacion.fecha_registro.desc(), Reparacion.id.desc()).all()


def create_reparacion(db: Session, *, creado_por: str | None = None, **datos) -> Reparacion:
    """
    Registra una reparación y su primer renglón de historial.

    ``datos`` acepta los campos de ``CAMPOS_MUTABLES``. Se valida todo antes
    de abrir la transacción.
    """
    campos = _validated(datos)
    reparacion = Reparacion(
        **campos,
        creado_por=_clean(creado_por) or CREADO_POR_DEFECTO,
        activo=True,
    )

    with unit_of_work(db, "create_reparacion", nombre_cliente=campos["nombre_cliente"]):
        db.add(reparacion)
        db.flush()
        _append_historial(
            db,
            reparacion,
            estado_anterior=None,
            estado=reparacion.estado,
            usuario_id=reparacion.creado_por,
            notas="Reparación registrada",
        )

    logger.info(
        "reparacion_created",
        extra={
            "reparacion_id": reparacion.id,
            "estado": reparacion.estado.value,
            "costo_total": str(reparacion.costo_total),
        },
    )
    return reparacion


def change_estado(
    db: Session,
    reparacion_id: int,
    nuevo_estado: ReparacionEstado | str,
    *,
    usuario_id: str | None = None,
    notas: str | None = None,
) -> Reparacion:
    estado = _estado(nuevo_estado)

    with unit_of_work(db, "change_estado", reparacion_id=reparacion_id):
        reparacion = get_reparacion(db, reparacion_id)
        anterior = reparacion.estado
        reparacion.estado = estado
        db.add(reparacion)
        _append_historial(
            db,
            reparacion,
            estado_anterior=anterior,
            estado=estado,
            usuario_id=usuario_id,
            notas=notas,
        )

    logger.info(
        "reparacion_estado_changed",
        extra={
            "reparacion_id": reparacion_id,
            "estado_anterior": anterior.value,
            "estado": estado.value,
            "usuario_id": usuario_id,
        },
    )
    return reparacion


def update_reparacion(
    db: Session,
    reparacion_id: int | None,
    *,
    usuario_id: str | None = None,
    **datos,
) -> Reparacion:
    """
    Reemplazo completo de los campos editables. Si el estado cambia, se
    agrega el renglón de historial correspondiente.
    """
    if reparacion_id is None:
        raise ValidationError("El id de la reparación es requerido", field="id")
    desconocidos = set(datos) - set(CAMPOS_MUTABLES)
    if desconocidos:
        raise ValidationError(f"Campos no editables: {', '.join(sorted(desconocidos))}")
    actual = get_reparacion(db, reparacion_id)
    # sin estado ni fecha de ingreso explícitos se conservan los actuales
    if datos.get("estado") is None:
        datos["estado"] = actual.estado
    if datos.get("fecha_ingreso") is None:
        datos["fecha_ingreso"] = actual.fecha_ingreso
    campos = _validated(datos)

    with unit_of_work(db, "update_reparacion", reparacion_id=reparacion_id):
        reparacion = get_reparacion(db, reparacion_id)
        anterior = reparacion.estado
        for field, value in campos.items():
            setattr(reparacion, field, value)
        db.add(reparacion)
        if anterior != reparacion.estado:
            _append_historial(
                db,
                reparacion,
                estado_anterior=anterior,
                estado=reparacion.estado,
                usuario_id=usuario_id,
                notas="Cambio de estado por edición",
            )

    logger.info("reparacion_updated", extra={"reparacion_id": reparacion_id})
    return reparacion


def delete_reparacion(db: Session, reparacion_id: int) -> Reparacion:
    reparacion = get_reparacion(db, reparacion_id)
    with unit_of_work(db, "delete_reparacion", reparacion_id=reparacion_id):
        reparacion.activo = False
        db.add(reparacion)
    logger.info("reparacion_deleted", extra={"reparacion_id": reparacion_id})
    return reparacion


def pending_balance(reparacion: Reparacion) -> Decimal:
    """Saldo pendiente: costo total menos anticipo, nunca negativo."""
    costo = Decimal(str(reparacion.costo_total or 0))
    anticipo = Decimal(str(reparacion.anticipo or 0))
    return max(Decimal("0"), costo - anticipo)


def list_historial(db: Session, reparacion_id: int) -> list[HistorialReparacion]:
    if db.get(Reparacion, reparacion_id) is None:
        raise NotFoundError("Reparación", reparacion_id)
    return (
        db.query(HistorialReparacion)
        .filter(HistorialReparacion.reparacion_id == reparacion_id)
        .order_by(
            HistorialReparacion.fecha.desc(),
            HistorialReparacion.fecha_registro.desc(),
            HistorialReparacion.id.desc(),
        )
        .all()
    )


def nuevo_numero_recibo() -> str:
    return f"REC-{uuid.uuid4().hex.upper()}"


def generate_recibo(db: Session, reparacion_id: int) -> dict:
    """Proyección de solo lectura para imprimir el recibo."""
    reparacion = get_reparacion(db, reparacion_id)
    usos = usage_service.usage_for_document(db, TipoDocumento.reparacion, reparacion.id)
    costo_materiales = sum((u.costo_total for u in usos), Decimal("0"))

    recibo = {
        "numero_recibo": nuevo_numero_recibo(),
        "fecha_emision": datetime.utcnow(),
        "reparacion_id": reparacion.id,
        "cliente": reparacion.nombre_cliente,
        "contacto": reparacion.contacto,
        "modelo": reparacion.modelo,
        "descripcion": reparacion.condicion,
        "piezas": reparacion.piezas,
        "costo_total": Decimal(str(reparacion.costo_total)),
        "anticipo": Decimal(str(reparacion.anticipo)),
        "saldo_pendiente": pending_balance(reparacion),
        "estado": reparacion.estado.value,
        "fecha_ingreso": reparacion.fecha_ingreso,
        "fecha_entrega": reparacion.fecha_entrega,
        "trabajador_asignado": reparacion.trabajador_asignado,
        "costo_materiales": costo_materiales,
        "materiales": [
            {
                "materia_id": u.materia_id,
                "cantidad": u.cantidad,
                "costo_unitario": Decimal(str(u.costo_unitario)),
                "costo_total": u.costo_total,
            }
            for u in usos
        ],
        "recibo_url": reparacion.recibo_url,
    }
    logger.info(
        "recibo_generated",
        extra={"reparacion_id": reparacion.id, "numero_recibo": recibo["numero_recibo"]},
    )
    return recibo

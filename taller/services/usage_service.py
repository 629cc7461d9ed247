# taller/services/usage_service.py
"""Libro de consumo de materia prima por documento (reparación o pedido)."""

from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from taller.core.errors import NotFoundError, ValidationError
from taller.core.logging_config import get_logger
from taller.db.session import unit_of_work
from taller.models import MateriaPrima, MaterialUtilizado, Pedido, Reparacion, TipoDocumento
from taller.services import stock_service

logger = get_logger("services.usage")


def _coerce_tipo(tipo_documento: TipoDocumento | str) -> TipoDocumento:
    try:
        return TipoDocumento(tipo_documento)
    except ValueError:
        raise ValidationError(
            f"Tipo de documento no válido: {tipo_documento}. Use: reparacion, pedido",
            field="tipo_documento",
        )


def _ensure_documento(db: Session, tipo: TipoDocumento, documento_id: int) -> None:
    if tipo == TipoDocumento.reparacion:
        doc = db.get(Reparacion, documento_id)
        if doc is None or not doc.activo:
            raise NotFoundError("Reparación", documento_id)
    else:
        if db.get(Pedido, documento_id) is None:
            raise NotFoundError("Pedido", documento_id)


def _validate(cantidad, costo_unitario) -> Decimal:
    if isinstance(cantidad, bool) or not isinstance(cantidad, int) or cantidad <= 0:
        raise ValidationError("La cantidad debe ser mayor a cero", field="cantidad")
    try:
        costo = Decimal(str(costo_unitario if costo_unitario is not None else 0))
    except (InvalidOperation, ValueError):
        raise ValidationError("El costo unitario debe ser numérico", field="costo_unitario")
    if not costo.is_finite() or costo < 0:
        raise ValidationError("El costo unitario no puede ser negativo", field="costo_unitario")
    return costo


def _new_usage(
    db: Session,
    *,
    tipo: TipoDocumento,
    documento_id: int,
    materia_id: int,
    cantidad: int,
    costo_unitario: Decimal,
    usuario_id: str | None,
) -> MaterialUtilizado:
    _ensure_documento(db, tipo, documento_id)
    material = db.get(MateriaPrima, materia_id)
    if material is None or not material.activo:
        raise NotFoundError("Material", materia_id)

    usage = MaterialUtilizado(
        tipo_documento=tipo,
        documento_id=documento_id,
        materia_id=materia_id,
        cantidad=cantidad,
        costo_unitario=costo_unitario,
        fecha=date.today(),
        usuario_id=usuario_id,
    )
    db.add(usage)
    return usage


def record_usage(
    db: Session,
    *,
    tipo_documento: TipoDocumento | str,
    documento_id: int,
    materia_id: int,
    cantidad: int,
    costo_unitario: Decimal | float | int,
    usuario_id: str | None = None,
) -> MaterialUtilizado:
    """
    Atribuye consumo a un documento. No descuenta existencias: para eso está
    ``consume_material``.
    """
    tipo = _coerce_tipo(tipo_documento)
    costo = _validate(cantidad, costo_unitario)

    with unit_of_work(db, "record_usage", documento_id=documento_id, materia_id=materia_id):
        usage = _new_usage(
            db,
            tipo=tipo,
            documento_id=documento_id,
            materia_id=materia_id,
            cantidad=cantidad,
            costo_unitario=costo,
            usuario_id=usuario_id,
        )

    logger.info(
        "usage_recorded",
        extra={
            "usage_id": usage.id,
            "tipo_documento": tipo.value,
            "documento_id": documento_id,
            "materia_id": materia_id,
            "cantidad": cantidad,
        },
    )
    return usage


def consume_material(
    db: Session,
    *,
    tipo_documento: TipoDocumento | str,
    documento_id: int,
    materia_id: int,
    cantidad: int,
    costo_unitario: Decimal | float | int | None = None,
    usuario_id: str | None = None,
) -> MaterialUtilizado:
    """
    Registra el consumo y además descuenta la existencia con un movimiento
    ``consumo``, todo en una transacción. Sin stock suficiente lanza
    ``ConflictError`` y no escribe nada.
    """
    tipo = _coerce_tipo(tipo_documento)
    costo = _validate(cantidad, costo_unitario)

    with unit_of_work(db, "consume_material", documento_id=documento_id, materia_id=materia_id):
        if costo_unitario is None:
            material = db.get(MateriaPrima, materia_id)
            if material is not None:
                costo = Decimal(str(material.costo or 0))
        usage = _new_usage(
            db,
            tipo=tipo,
            documento_id=documento_id,
            materia_id=materia_id,
            cantidad=cantidad,
            costo_unitario=costo,
            usuario_id=usuario_id,
        )
        stock_service.apply_consumo(
            db,
            materia_id,
            cantidad=cantidad,
            usuario_id=usuario_id,
            nota=f"Consumo {tipo.value} #{documento_id}",
        )

    logger.info(
        "material_consumed",
        extra={
            "usage_id": usage.id,
            "tipo_documento": tipo.value,
            "documento_id": documento_id,
            "materia_id": materia_id,
            "cantidad": cantidad,
        },
    )
    return usage


def usage_for_document(
    db: Session,
    tipo_documento: TipoDocumento | str,
    documento_id: int,
) -> list[MaterialUtilizado]:
    tipo = _coerce_tipo(tipo_documento)
    return (
        db.query(MaterialUtilizado)
        .filter(
            MaterialUtilizado.tipo_documento == tipo,
            MaterialUtilizado.documento_id == documento_id,
        )
        .order_by(MaterialUtilizado.fecha_registro.desc(), MaterialUtilizado.id.desc())
        .all()
    )


def cost_for_document(
    db: Session,
    tipo_documento: TipoDocumento | str,
    documento_id: int,
) -> Decimal:
    total = Decimal("0")
    for usage in usage_for_document(db, tipo_documento, documento_id):
        total += usage.costo_total
    return total


def delete_usage(db: Session, usage_id: int) -> None:
    usage = db.get(MaterialUtilizado, usage_id)
    if usage is None:
        raise NotFoundError("Material utilizado", usage_id)
    with unit_of_work(db, "delete_usage", usage_id=usage_id):
        db.delete(usage)
    logger.info("usage_deleted", extra={"usage_id": usage_id})

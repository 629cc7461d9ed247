# taller/services/herramienta_service.py
"""
Préstamo de herramientas del taller.

Modelo simplificado: un contador de unidades disponibles más un único slot
de asignación (usuario, quién asignó, cuándo). Con varias unidades fuera,
el slot refleja solo la última asignación y una devolución deja la
herramienta como "Disponible".
"""

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taller.core.errors import ConflictError, NotFoundError, ValidationError
from taller.core.logging_config import get_logger
from taller.db.session import unit_of_work
from taller.models import Herramienta, HerramientaEstatus

logger = get_logger("services.herramienta")


def _positive_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("La cantidad debe ser mayor a cero", field=field)
    return value


def _lookup(db: Session, id_o_nombre: str | int, *, lock: bool = False) -> Herramienta | None:
    def _query():
        query = db.query(Herramienta).filter(Herramienta.activo.is_(True))
        if lock:
            query = query.populate_existing().with_for_update()
        return query

    key = str(id_o_nombre).strip()
    if key.isdigit():
        herramienta = _query().filter(Herramienta.id == int(key)).first()
        if herramienta is not None:
            return herramienta
    return _query().filter(Herramienta.nombre == key).first()


def get_herramienta(db: Session, id_o_nombre: str | int, *, lock: bool = False) -> Herramienta:
    """Busca por id si la clave es numérica; si no aparece, por nombre exacto."""
    herramienta = _lookup(db, id_o_nombre, lock=lock)
    if herramienta is None:
        raise NotFoundError("Herramienta", id_o_nombre)
    return herramienta


def list_herramientas(
    db: Session,
    *,
    buscar: str | None = None,
    estatus: HerramientaEstatus | str | None = None,
) -> list[Herramienta]:
    query = db.query(Herramienta).filter(Herramienta.activo.is_(True))
    if buscar:
        term = f"%{buscar.strip()}%"
        query = query.filter(
            or_(Herramienta.nombre.ilike(term), Herramienta.descripcion.ilike(term))
        )
    if estatus:
        try:
            estatus = HerramientaEstatus(estatus)
        except ValueError:
            raise ValidationError(f"Estatus no válido: {estatus}", field="estatus")
        query = query.filter(Herramienta.estatus == estatus)
    return query.order_by(Herramienta.nombre).all()


def create_herramienta(
    db: Session,
    *,
    nombre: str,
    cantidad_total: int,
    descripcion: str | None = None,
    creado_por: str | None = None,
) -> Herramienta:
    if nombre is None or not nombre.strip():
        raise ValidationError("El nombre de la herramienta es requerido", field="nombre")
    cantidad_total = _positive_int(cantidad_total, "cantidad_total")

    herramienta = Herramienta(
        nombre=nombre.strip(),
        descripcion=(descripcion or "").strip() or None,
        cantidad_total=cantidad_total,
        cantidad_disponible=cantidad_total,
        estatus=HerramientaEstatus.disponible,
        activo=True,
        creado_por=creado_por,
    )
    with unit_of_work(db, "create_herramienta", nombre_herramienta=herramienta.nombre):
        db.add(herramienta)

    logger.info(
        "tool_created",
        extra={"herramienta_id": herramienta.id, "cantidad_total": cantidad_total},
    )
    return herramienta


def update_stock(db: Session, id_o_nombre: str | int, nueva_cantidad: int) -> Herramienta:
    """
    Reemplaza el stock: total y disponible quedan en ``nueva_cantidad``.
    Como todas las unidades quedan disponibles, se limpia la asignación.
    """
    nueva_cantidad = _positive_int(nueva_cantidad, "nueva_cantidad")

    with unit_of_work(db, "update_tool_stock", herramienta=str(id_o_nombre)):
        herramienta = get_herramienta(db, id_o_nombre, lock=True)
        herramienta.cantidad_total = nueva_cantidad
        herramienta.cantidad_disponible = nueva_cantidad
        herramienta.estatus = HerramientaEstatus.disponible
        herramienta.usuario_asignado = None
        herramienta.asignado_por = None
        herramienta.fecha_asignacion = None
        herramienta.fecha_actualizacion = datetime.utcnow()
        db.add(herramienta)

    logger.info(
        "tool_stock_updated",
        extra={"herramienta_id": herramienta.id, "cantidad_total": nueva_cantidad},
    )
    return herramienta


def assign(
    db: Session,
    id_o_nombre: str | int,
    *,
    usuario_asignado: str,
    asignado_por: str | None = None,
) -> Herramienta:
    if usuario_asignado is None or not usuario_asignado.strip():
        raise ValidationError("El usuario asignado es requerido", field="usuario_asignado")

    with unit_of_work(db, "assign_tool", herramienta=str(id_o_nombre)):
        herramienta = get_herramienta(db, id_o_nombre, lock=True)
        if herramienta.cantidad_disponible <= 0:
            raise ConflictError("no stock available to assign")
        now = datetime.utcnow()
        herramienta.cantidad_disponible -= 1
        herramienta.estatus = HerramientaEstatus.en_uso
        herramienta.usuario_asignado = usuario_asignado.strip()
        herramienta.asignado_por = asignado_por
        herramienta.fecha_asignacion = now
        herramienta.fecha_actualizacion = now
        db.add(herramienta)

    logger.info(
        "tool_assigned",
        extra={
            "herramienta_id": herramienta.id,
            "usuario_asignado": herramienta.usuario_asignado,
            "asignado_por": asignado_por,
            "disponible": herramienta.cantidad_disponible,
        },
    )
    return herramienta


def return_herramienta(db: Session, id_o_nombre: str | int) -> Herramienta:
    """
    Regresa una unidad. Rechaza la devolución si no hay unidades fuera, para
    que el disponible nunca supere al total.
    """
    with unit_of_work(db, "return_tool", herramienta=str(id_o_nombre)):
        herramienta = get_herramienta(db, id_o_nombre, lock=True)
        if herramienta.cantidad_disponible >= herramienta.cantidad_total:
            raise ConflictError("La herramienta no tiene unidades asignadas")
        herramienta.cantidad_disponible += 1
        herramienta.estatus = HerramientaEstatus.disponible
        herramienta.usuario_asignado = None
        herramienta.asignado_por = None
        herramienta.fecha_asignacion = None
        herramienta.fecha_actualizacion = datetime.utcnow()
        db.add(herramienta)

    logger.info(
        "tool_returned",
        extra={"herramienta_id": herramienta.id, "disponible": herramienta.cantidad_disponible},
    )
    return herramienta


def delete_herramienta(db: Session, id_o_nombre: str | int) -> Herramienta:
    herramienta = get_herramienta(db, id_o_nombre)
    with unit_of_work(db, "delete_tool", herramienta_id=herramienta.id):
        herramienta.activo = False
        herramienta.fecha_actualizacion = datetime.utcnow()
        db.add(herramienta)
    logger.info("tool_deleted", extra={"herramienta_id": herramienta.id})
    return herramienta

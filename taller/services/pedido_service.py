# taller/services/pedido_service.py
"""
Pedidos de fabricación.

Encabezado, renglones e historial de etapas se escriben juntos. Las etapas
son texto libre; al llegar a la etapa final se registra una venta por
renglón en la misma transacción.
"""

import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session, selectinload

from taller.core.config import Settings, get_settings
from taller.core.errors import ConflictError, NotFoundError, ValidationError
from taller.core.logging_config import get_logger
from taller.db.session import unit_of_work
from taller.models import MaterialUtilizado, Pedido, PedidoEtapa, PedidoProducto, TipoDocumento, Venta

logger = get_logger("services.pedido")

CREADO_POR_DEFECTO = "admin"
USUARIO_ETAPAS = "sistema"
USUARIO_VENTAS = "Sistema"
RESUMEN_MAX = 30

_FECHA_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _decimal(value, field: str, label: str) -> Decimal:
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} debe ser numérico", field=field)
    if not dec.is_finite():
        raise ValidationError(f"{label} debe ser numérico", field=field)
    return dec


def _resumen_producto(nombres: list[str]) -> str:
    primero = nombres[0]
    if len(nombres) == 1:
        return primero
    return f"{primero[:RESUMEN_MAX]}... (+{len(nombres) - 1} items)"


def _parse_fecha(fecha: str | None) -> date:
    if fecha is None or not str(fecha).strip():
        raise ValidationError("La fecha es requerida", field="fecha")
    fecha = str(fecha).strip()
    if not _FECHA_RE.match(fecha):
        raise ValidationError("Formato de fecha inválido. Use YYYY-MM-DD", field="fecha")
    # también se rechazan días inexistentes (2025-02-30): la consulta necesita una fecha real
    try:
        return date.fromisoformat(fecha)
    except ValueError:
        raise ValidationError("Formato de fecha inválido. Use YYYY-MM-DD", field="fecha")


def _lineas(productos: list[dict] | None) -> list[PedidoProducto]:
    if not productos:
        raise ValidationError("Debe agregar al menos un producto al pedido", field="productos")

    lineas = []
    for orden, item in enumerate(productos, start=1):
        nombre = (item.get("producto_nombre") or "").strip()
        if not nombre:
            raise ValidationError("Cada producto requiere nombre", field="producto_nombre")
        cantidad = item.get("cantidad")
        if isinstance(cantidad, bool) or not isinstance(cantidad, int) or cantidad <= 0:
            raise ValidationError("La cantidad debe ser mayor a cero", field="cantidad")
        precio = _decimal(item.get("precio_unitario") or 0, "precio_unitario", "El precio unitario")
        if precio < 0:
            raise ValidationError("El precio unitario no puede ser negativo", field="precio_unitario")
        lineas.append(
            PedidoProducto(
                producto_id=item.get("producto_id"),
                producto_nombre=nombre,
                cantidad=cantidad,
                precio_unitario=precio,
                subtotal=precio * cantidad,
                orden=orden,
            )
        )
    return lineas


def _base_query(db: Session):
    return db.query(Pedido).options(selectinload(Pedido.productos))


def get_pedido(db: Session, pedido_id: int) -> Pedido:
    pedido = _base_query(db).filter(Pedido.id == pedido_id).first()
    if pedido is None:
        raise NotFoundError("Pedido", pedido_id)
    return pedido


def list_pedidos(db: Session) -> list[Pedido]:
    return _base_query(db).order_by(Pedido.fecha_creacion.desc(), Pedido.id.desc()).all()


def list_by_fecha(db: Session, fecha: str) -> list[Pedido]:
    """Pedidos creados en ``fecha`` (``YYYY-MM-DD``), con sus productos."""
    dia = _parse_fecha(fecha)
    inicio = datetime.combine(dia, datetime.min.time())
    fin = inicio + timedelta(days=1)
    return (
        _base_query(db)
        .filter(Pedido.fecha_creacion >= inicio, Pedido.fecha_creacion < fin)
        .order_by(Pedido.fecha_creacion.desc(), Pedido.id.desc())
        .all()
    )


def create_pedido(
    db: Session,
    *,
    cliente_nombre: str,
    productos: list[dict],
    total: Decimal | float | int,
    cliente_contacto: str | None = None,
    fecha_entrega: date | None = None,
    notas: str | None = None,
    anticipo: Decimal | float | int = 0,
    etapa: str | None = None,
    creado_por: str | None = None,
    settings: Settings | None = None,
) -> Pedido:
    """
    Crea encabezado, renglones y el primer renglón del historial de etapas.

    ``productos`` es una lista de dicts con ``producto_nombre``, ``cantidad``,
    ``precio_unitario`` y opcionalmente ``producto_id``.
    """
    settings = settings or get_settings()

    cliente_nombre = (cliente_nombre or "").strip()
    if not cliente_nombre:
        raise ValidationError("El nombre del cliente es requerido", field="cliente_nombre")
    lineas = _lineas(productos)
    if total is None:
        raise ValidationError("El total del pedido debe ser mayor a cero", field="total")
    total = _decimal(total, "total", "El total")
    if total <= 0:
        raise ValidationError("El total del pedido debe ser mayor a cero", field="total")
    anticipo = _decimal(anticipo or 0, "anticipo", "El anticipo")
    if anticipo < 0:
        raise ValidationError("El anticipo no puede ser negativo", field="anticipo")

    pedido = Pedido(
        cliente_nombre=cliente_nombre,
        cliente_contacto=(cliente_contacto or "").strip() or None,
        fecha_entrega=fecha_entrega,
        notas=(notas or "").strip() or None,
        etapa=(etapa or "").strip() or settings.PEDIDO_ETAPA_INICIAL,
        total=total,
        anticipo=anticipo,
        total_cantidad=sum(linea.cantidad for linea in lineas),
        resumen_producto=_resumen_producto([linea.producto_nombre for linea in lineas]),
        creado_por=(creado_por or "").strip() or CREADO_POR_DEFECTO,
    )
    pedido.productos = lineas
    pedido.etapas = [
        PedidoEtapa(etapa=pedido.etapa, notas="Pedido creado", usuario=USUARIO_ETAPAS)
    ]

    with unit_of_work(db, "create_pedido", cliente_nombre=cliente_nombre):
        db.add(pedido)

    logger.info(
        "pedido_created",
        extra={
            "pedido_id": pedido.id,
            "productos": len(lineas),
            "total_cantidad": pedido.total_cantidad,
            "total": str(total),
        },
    )
    return pedido


def _registrar_ventas(db: Session, pedido: Pedido) -> list[Venta]:
    ventas = []
    for linea in pedido.productos:
        venta = Venta(
            pedido_id=pedido.id,
            producto_id=linea.producto_id,
            producto_nombre=linea.producto_nombre,
            cantidad=linea.cantidad,
            precio_unitario=linea.precio_unitario,
            precio_total=linea.subtotal,
            fecha=date.today(),
            tipo="pedido",
            usuario_registro=USUARIO_VENTAS,
        )
        db.add(venta)
        ventas.append(venta)
    return ventas


def advance_etapa(
    db: Session,
    pedido_id: int,
    nueva_etapa: str,
    notas: str | None = None,
    *,
    settings: Settings | None = None,
) -> Pedido:
    settings = settings or get_settings()
    nueva_etapa = (nueva_etapa or "").strip()
    if not nueva_etapa:
        raise ValidationError("La nueva etapa es requerida", field="etapa")

    ventas: list[Venta] = []
    with unit_of_work(db, "advance_etapa", pedido_id=pedido_id):
        pedido = get_pedido(db, pedido_id)
        anterior = pedido.etapa
        pedido.etapa = nueva_etapa
        pedido.fecha_actualizacion = datetime.utcnow()
        # vía la colección: delete_pedido borra en cascada lo que hay en pedido.etapas
        pedido.etapas.append(
            PedidoEtapa(
                etapa=nueva_etapa,
                notas=(notas or "").strip() or None,
                usuario=USUARIO_ETAPAS,
            )
        )
        db.add(pedido)
        if nueva_etapa == settings.PEDIDO_ETAPA_FINAL and anterior != nueva_etapa:
            ya_vendido = db.query(Venta.id).filter(Venta.pedido_id == pedido.id).first()
            if ya_vendido is None:
                ventas = _registrar_ventas(db, pedido)

    logger.info(
        "pedido_etapa_advanced",
        extra={"pedido_id": pedido_id, "etapa_anterior": anterior, "etapa": nueva_etapa},
    )
    if ventas:
        logger.info(
            "ventas_registradas",
            extra={"pedido_id": pedido_id, "ventas": [v.id for v in ventas]},
        )
    return pedido


def list_etapas(db: Session, pedido_id: int) -> list[PedidoEtapa]:
    get_pedido(db, pedido_id)
    return (
        db.query(PedidoEtapa)
        .filter(PedidoEtapa.pedido_id == pedido_id)
        .order_by(PedidoEtapa.fecha_registro.desc(), PedidoEtapa.id.desc())
        .all()
    )


def list_ventas(db: Session, pedido_id: int) -> list[Venta]:
    return db.query(Venta).filter(Venta.pedido_id == pedido_id).order_by(Venta.id).all()


def delete_pedido(db: Session, pedido_id: int) -> None:
    """
    Borra renglones, historial de etapas, consumos de material y
    encabezado en una transacción.
    Un pedido con ventas registradas no se puede borrar.
    """
    pedido = get_pedido(db, pedido_id)
    if db.query(Venta.id).filter(Venta.pedido_id == pedido_id).first() is not None:
        raise ConflictError("El pedido tiene ventas registradas y no se puede eliminar")

    with unit_of_work(db, "delete_pedido", pedido_id=pedido_id):
        db.query(MaterialUtilizado).filter(
            MaterialUtilizado.tipo_documento == TipoDocumento.pedido,
            MaterialUtilizado.documento_id == pedido_id,
        ).delete(synchronize_session=False)
        db.delete(pedido)

    logger.info("pedido_deleted", extra={"pedido_id": pedido_id})

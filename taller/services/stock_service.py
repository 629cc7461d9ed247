# taller/services/stock_service.py
"""
Inventario de materia prima y su libro de movimientos.

La cantidad de una MateriaPrima solo cambia junto con un MovimientoMp en la
misma transacción, de modo que siempre se cumple:

    materia.cantidad == Σ entrada − Σ salida − Σ consumo
"""

from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taller.core.errors import ConflictError, NotFoundError, ValidationError
from taller.core.logging_config import get_logger
from taller.db.session import unit_of_work
from taller.models import MateriaPrima, MovimientoMp, TipoMovimiento

logger = get_logger("services.stock")

CAMPOS_EDITABLES = ("nombre", "descripcion", "unidad", "stock_minimo", "costo", "categoria")


def _required_text(value: str | None, field: str, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} es requerido", field=field)
    return str(value).strip()


def _non_negative_int(value, field: str, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} debe ser un número positivo", field=field)
    return int(value)


def _non_negative_decimal(value, field: str, label: str) -> Decimal:
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{label} debe ser un número positivo", field=field)
    if not dec.is_finite() or dec < 0:
        raise ValidationError(f"{label} debe ser un número positivo", field=field)
    return dec


def _append_movimiento(
    db: Session,
    material: MateriaPrima,
    *,
    tipo: TipoMovimiento,
    cantidad: int,
    usuario_id: str | None,
    nota: str | None = None,
) -> MovimientoMp:
    mov = MovimientoMp(
        materia_id=material.id,
        fecha=date.today(),
        tipo=tipo,
        cantidad=cantidad,
        usuario_id=usuario_id,
        nota=(nota or "").strip() or None,
    )
    db.add(mov)
    return mov


def _locked_material(db: Session, material_id: int) -> MateriaPrima:
    material = (
        db.query(MateriaPrima)
        .filter(MateriaPrima.id == material_id, MateriaPrima.activo.is_(True))
        .populate_existing()
        .with_for_update()
        .first()
    )
    if material is None:
        raise NotFoundError("Material", material_id)
    return material


def get_material(db: Session, material_id: int) -> MateriaPrima:
    material = (
        db.query(MateriaPrima)
        .filter(MateriaPrima.id == material_id, MateriaPrima.activo.is_(True))
        .first()
    )
    if material is None:
        raise NotFoundError("Material", material_id)
    return material


def list_materiales(
    db: Session,
    *,
    buscar: str | None = None,
    categoria: str | None = None,
) -> list[MateriaPrima]:
    query = db.query(MateriaPrima).filter(MateriaPrima.activo.is_(True))
    if buscar:
        term = f"%{buscar.strip()}%"
        query = query.filter(
            or_(MateriaPrima.nombre.ilike(term), MateriaPrima.descripcion.ilike(term))
        )
    if categoria:
        query = query.filter(MateriaPrima.categoria == categoria)
    return query.order_by(MateriaPrima.nombre).all()


def list_bajo_stock(db: Session) -> list[MateriaPrima]:
    return (
        db.query(MateriaPrima)
        .filter(
            MateriaPrima.activo.is_(True),
            MateriaPrima.cantidad <= MateriaPrima.stock_minimo,
        )
        .order_by(MateriaPrima.cantidad, MateriaPrima.nombre)
        .all()
    )


def create_material(
    db: Session,
    *,
    nombre: str,
    cantidad: int,
    unidad: str,
    stock_minimo: int,
    costo: Decimal | float | int,
    categoria: str,
    descripcion: str | None = None,
    creado_por: str | None = None,
) -> MateriaPrima:
    """
    Da de alta una materia prima. Si trae cantidad inicial, se registra una
    entrada por esa cantidad en la misma transacción.
    """
    nombre = _required_text(nombre, "nombre", "El nombre del material")
    cantidad = _non_negative_int(cantidad, "cantidad", "La cantidad")
    stock_minimo = _non_negative_int(stock_minimo, "stock_minimo", "El stock mínimo")
    costo = _non_negative_decimal(costo, "costo", "El costo")
    unidad = _required_text(unidad, "unidad", "La unidad")
    categoria = _required_text(categoria, "categoria", "La categoría")

    material = MateriaPrima(
        nombre=nombre,
        descripcion=(descripcion or "").strip() or None,
        cantidad=cantidad,
        unidad=unidad,
        stock_minimo=stock_minimo,
        costo=costo,
        categoria=categoria,
        activo=True,
        creado_por=creado_por,
    )
    with unit_of_work(db, "create_material", nombre_material=nombre):
        db.add(material)
        db.flush()
        if cantidad > 0:
            _append_movimiento(
                db,
                material,
                tipo=TipoMovimiento.entrada,
                cantidad=cantidad,
                usuario_id=creado_por,
                nota="Stock inicial",
            )

    logger.info(
        "material_created",
        extra={"material_id": material.id, "cantidad": cantidad, "categoria": categoria},
    )
    return material


def edit_material(db: Session, material_id: int, **cambios) -> MateriaPrima:
    """
    Cambia solo campos descriptivos. La cantidad se mueve exclusivamente con
    ``update_stock`` para que quede en el libro.
    """
    if "cantidad" in cambios:
        raise ValidationError(
            "La cantidad no se edita directamente; use la actualización de stock",
            field="cantidad",
        )
    desconocidos = set(cambios) - set(CAMPOS_EDITABLES)
    if desconocidos:
        raise ValidationError(f"Campos no editables: {', '.join(sorted(desconocidos))}")

    if "nombre" in cambios:
        cambios["nombre"] = _required_text(cambios["nombre"], "nombre", "El nombre del material")
    if "unidad" in cambios:
        cambios["unidad"] = _required_text(cambios["unidad"], "unidad", "La unidad")
    if "categoria" in cambios:
        cambios["categoria"] = _required_text(cambios["categoria"], "categoria", "La categoría")
    if "stock_minimo" in cambios:
        cambios["stock_minimo"] = _non_negative_int(cambios["stock_minimo"], "stock_minimo", "El stock mínimo")
    if "costo" in cambios:
        cambios["costo"] = _non_negative_decimal(cambios["costo"], "costo", "El costo")
    if "descripcion" in cambios:
        cambios["descripcion"] = (cambios["descripcion"] or "").strip() or None

    material = get_material(db, material_id)
    with unit_of_work(db, "edit_material", material_id=material_id):
        for field, value in cambios.items():
            setattr(material, field, value)
        db.add(material)

    logger.info("material_edited", extra={"material_id": material_id, "campos": sorted(cambios)})
    return material


def update_stock(
    db: Session,
    material_id: int,
    *,
    nueva_cantidad: int,
    usuario_id: str | None = None,
    nota: str | None = None,
) -> MateriaPrima:
    """
    Fija la cantidad en existencia y registra la diferencia como entrada o
    salida. Si la cantidad no cambia, no se escribe movimiento.
    """
    nueva_cantidad = _non_negative_int(nueva_cantidad, "nueva_cantidad", "La cantidad")

    with unit_of_work(db, "update_stock", material_id=material_id):
        material = _locked_material(db, material_id)
        diferencia = nueva_cantidad - material.cantidad
        material.cantidad = nueva_cantidad
        db.add(material)
        if diferencia != 0:
            _append_movimiento(
                db,
                material,
                tipo=TipoMovimiento.entrada if diferencia > 0 else TipoMovimiento.salida,
                cantidad=abs(diferencia),
                usuario_id=usuario_id,
                nota=nota,
            )

    logger.info(
        "stock_updated",
        extra={"material_id": material_id, "cantidad": nueva_cantidad, "diferencia": diferencia},
    )
    return material


def apply_consumo(
    db: Session,
    material_id: int,
    *,
    cantidad: int,
    usuario_id: str | None = None,
    nota: str | None = None,
) -> MovimientoMp:
    """
    Descuenta ``cantidad`` como consumo. No hace commit: se usa dentro de la
    transacción de quien registra el consumo.
    """
    material = _locked_material(db, material_id)
    if material.cantidad < cantidad:
        raise ConflictError(
            f"Stock insuficiente de '{material.nombre}': hay {material.cantidad}, se piden {cantidad}"
        )
    material.cantidad -= cantidad
    db.add(material)
    return _append_movimiento(
        db,
        material,
        tipo=TipoMovimiento.consumo,
        cantidad=cantidad,
        usuario_id=usuario_id,
        nota=nota,
    )


def list_history(db: Session, material_id: int) -> list[MovimientoMp]:
    """Movimientos del material, el más reciente primero. Incluye materiales dados de baja."""
    if db.get(MateriaPrima, material_id) is None:
        raise NotFoundError("Material", material_id)
    return (
        db.query(MovimientoMp)
        .filter(MovimientoMp.materia_id == material_id)
        .order_by(
            MovimientoMp.fecha.desc(),
            MovimientoMp.fecha_registro.desc(),
            MovimientoMp.id.desc(),
        )
        .all()
    )


def ledger_balance(db: Session, material_id: int) -> dict:
    """Compara la cantidad guardada contra la suma con signo del libro."""
    material = db.get(MateriaPrima, material_id)
    if material is None:
        raise NotFoundError("Material", material_id)
    movimientos = db.query(MovimientoMp).filter(MovimientoMp.materia_id == material_id).all()
    saldo = sum(m.cantidad_con_signo for m in movimientos)
    return {
        "material_id": material.id,
        "cantidad": material.cantidad,
        "saldo_libro": saldo,
        "movimientos": len(movimientos),
        "consistente": saldo == material.cantidad,
    }


def delete_material(db: Session, material_id: int) -> MateriaPrima:
    material = get_material(db, material_id)
    with unit_of_work(db, "delete_material", material_id=material_id):
        material.activo = False
        db.add(material)
    logger.info("material_deleted", extra={"material_id": material_id})
    return material

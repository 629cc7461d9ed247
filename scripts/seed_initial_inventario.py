# scripts/seed_initial_inventario.py
from sqlalchemy.orm import Session

from taller.core.config import get_settings
from taller.core.logging_config import configure_logging
from taller.db.immutability import register_immutability_listeners
from taller.db.session import Storage
from taller.models import Herramienta, MateriaPrima
from taller.services import herramienta_service, stock_service

"""
Seed de materia prima y herramientas iniciales del taller.

Todo pasa por los servicios, así que la cantidad inicial de cada material
queda registrada como una entrada en movimientos_mp.

Puedes editar MATERIALES_CONFIG y HERRAMIENTAS_CONFIG para ajustar nombres,
unidades, costos y cantidades.
"""

USUARIO_SEED = "seed"

MATERIALES_CONFIG = [
    {
        "nombre": "Resina epóxica",
        "descripcion": "Resina transparente para acabados y reparaciones.",
        "cantidad": 10,
        "unidad": "litro",
        "stock_minimo": 2,
        "costo": "50.00",
        "categoria": "Resinas",
    },
    {
        "nombre": "Yeso frio",
        "descripcion": "Yeso de secado en frío para figuras.",
        "cantidad": 25,
        "unidad": "kg",
        "stock_minimo": 5,
        "costo": "18.50",
        "categoria": "Yesos",
    },
    {
        "nombre": "Pintura acrílica blanca",
        "descripcion": None,
        "cantidad": 8,
        "unidad": "litro",
        "stock_minimo": 2,
        "costo": "95.00",
        "categoria": "Pinturas",
    },
    {
        "nombre": "Pincel fino",
        "descripcion": "Pincel de pelo sintético #2.",
        "cantidad": 30,
        "unidad": "pieza",
        "stock_minimo": 10,
        "costo": "12.00",
        "categoria": "Consumibles",
    },
    {
        "nombre": "Lija 220",
        "descripcion": "Pliego de lija de agua grano 220.",
        "cantidad": 50,
        "unidad": "pieza",
        "stock_minimo": 15,
        "costo": "6.50",
        "categoria": "Consumibles",
    },
]

HERRAMIENTAS_CONFIG = [
    {"nombre": "Taladro", "descripcion": "Taladro inalámbrico 12V.", "cantidad_total": 2},
    {"nombre": "Pistola de calor", "descripcion": None, "cantidad_total": 1},
    {"nombre": "Dremel", "descripcion": "Mototool con juego de puntas.", "cantidad_total": 3},
    {"nombre": "Espátula metálica", "descripcion": None, "cantidad_total": 6},
]


def seed_materiales(db: Session) -> None:
    print("=== Seed de materia prima ===")

    for cfg in MATERIALES_CONFIG:
        nombre = cfg["nombre"].strip()

        # idempotente por nombre
        existing = (
            db.query(MateriaPrima)
            .filter(MateriaPrima.nombre == nombre, MateriaPrima.activo.is_(True))
            .first()
        )
        if existing:
            print(f"[INFO] Material ya existe: '{existing.nombre}' (id={existing.id}), se omite.")
            continue

        material = stock_service.create_material(
            db,
            nombre=nombre,
            descripcion=cfg.get("descripcion"),
            cantidad=cfg["cantidad"],
            unidad=cfg["unidad"],
            stock_minimo=cfg["stock_minimo"],
            costo=cfg["costo"],
            categoria=cfg["categoria"],
            creado_por=USUARIO_SEED,
        )
        print(
            f"[OK] Material creado: '{material.nombre}' (id={material.id}) "
            f"con {material.cantidad} {material.unidad}"
        )

    print("\nSeed de materia prima completado.\n")


def seed_herramientas(db: Session) -> None:
    print("=== Seed de herramientas ===")

    for cfg in HERRAMIENTAS_CONFIG:
        nombre = cfg["nombre"].strip()

        existing = (
            db.query(Herramienta)
            .filter(Herramienta.nombre == nombre, Herramienta.activo.is_(True))
            .first()
        )
        if existing:
            print(f"[INFO] Herramienta ya existe: '{existing.nombre}' (id={existing.id}), se omite.")
            continue

        herramienta = herramienta_service.create_herramienta(
            db,
            nombre=nombre,
            descripcion=cfg.get("descripcion"),
            cantidad_total=cfg["cantidad_total"],
            creado_por=USUARIO_SEED,
        )
        print(
            f"[OK] Herramienta creada: '{herramienta.nombre}' (id={herramienta.id}) "
            f"x{herramienta.cantidad_total}"
        )

    print("\nSeed de herramientas completado.\n")


def main() -> None:
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL)
    register_immutability_listeners()

    storage = Storage.from_settings(settings)
    db: Session = storage.session()
    try:
        seed_materiales(db)
        seed_herramientas(db)
    finally:
        db.close()
        storage.dispose()


if __name__ == "__main__":
    main()

# taller/services/material_parser.py
"""
Lectura de la descripción libre de materiales usados, p. ej.
``"2 pincel, 1/3 litro resina"``.

Solo valida y clasifica; no toca el inventario de materia prima.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from taller.core.errors import ValidationError
from taller.core.logging_config import get_logger

logger = get_logger("services.material_parser")

# Se cuentan por pieza: no aceptan fracciones ni decimales.
MATERIALES_ENTEROS = (
    "pincel", "brocha", "lija", "espátula", "clavo", "tornillo",
    "destornillador", "martillo", "taladro", "sierra", "cutter",
    "rodillo", "guante", "mascarilla", "lente",
)

UNIDADES_FRACCIONABLES = (
    "litro", "kg", "kilo", "gramo", "metro", "cm", "mm", "ml", "centimetro",
)

NOMBRE_POR_DEFECTO = "material varios"

_FRACTION_RE = re.compile(r"\b\d+/\d+\b")
_NUMBER_RE = re.compile(r"\b\d+\.?\d*\b")
_UNIT_RE = re.compile(r"\b(" + "|".join(UNIDADES_FRACCIONABLES) + r")\b")
_SPACES_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MaterialParseado:
    nombre: str
    cantidad: float | None
    tipo: str | None  # "fraccion" | "entero" | "decimal"
    unidad_fija: bool


def es_material_entero(texto: str) -> bool:
    return any(material in texto for material in MATERIALES_ENTEROS)


def nombre_material(texto: str) -> str:
    nombre = _FRACTION_RE.sub("", texto)
    nombre = _NUMBER_RE.sub("", nombre)
    nombre = _UNIT_RE.sub("", nombre)
    nombre = _SPACES_RE.sub(" ", nombre).strip()
    return nombre or NOMBRE_POR_DEFECTO


def parse_material(segmento: str) -> MaterialParseado | None:
    """Interpreta un solo segmento. Devuelve None si viene vacío."""
    if segmento is None or not segmento.strip():
        return None

    texto = segmento.strip().lower()
    unidad_fija = es_material_entero(texto)
    nombre = nombre_material(texto)

    fraccion = _FRACTION_RE.search(texto)
    if fraccion:
        if unidad_fija:
            raise ValidationError(
                f"Material '{nombre}' no acepta fracciones. Use números enteros.",
                field="materiales_usados",
            )
        numerador, denominador = (int(p) for p in fraccion.group().split("/"))
        if denominador == 0:
            raise ValidationError("Denominador no puede ser cero", field="materiales_usados")
        return MaterialParseado(nombre, numerador / denominador, "fraccion", False)

    numero = _NUMBER_RE.search(texto)
    if numero:
        cantidad = float(numero.group())
        if unidad_fija and not cantidad.is_integer():
            raise ValidationError(
                f"Material '{nombre}' requiere cantidad entera. No use decimales.",
                field="materiales_usados",
            )
        tipo = "entero" if cantidad.is_integer() else "decimal"
        return MaterialParseado(nombre, cantidad, tipo, unidad_fija)

    return MaterialParseado(nombre, None, None, unidad_fija)


def validar_materiales_usados(texto: str | None) -> list[MaterialParseado]:
    """
    Valida una lista separada por comas. El primer segmento inválido corta
    con ``ValidationError``; los segmentos sin cantidad solo se registran.
    """
    if texto is None or not texto.strip():
        return []

    resultado: list[MaterialParseado] = []
    for segmento in texto.split(","):
        segmento = segmento.strip()
        try:
            parsed = parse_material(segmento)
        except ValidationError as exc:
            logger.warning(
                "material_usado_invalido",
                extra={"segmento": segmento, "detalle": exc.message},
            )
            raise ValidationError(
                f"Error en material '{segmento}': {exc.message}",
                field="materiales_usados",
            ) from exc
        if parsed is None:
            continue
        if parsed.cantidad is None:
            logger.info("material_sin_cantidad", extra={"segmento": segmento})
        resultado.append(parsed)
    return resultado

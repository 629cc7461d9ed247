# taller/models/reparacion.py
import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text

from taller.db.base import Base


class ReparacionEstado(str, enum.Enum):
    pendiente = "Pendiente"
    en_proceso = "En Proceso"
    completado = "Completado"
    entregado = "Entregado"


class Prioridad(str, enum.Enum):
    baja = "Baja"
    media = "Media"
    alta = "Alta"
    urgente = "Urgente"


def _values(enum_cls):
    return [member.value for member in enum_cls]


estado_enum = Enum(ReparacionEstado, name="reparacion_estado", values_callable=_values)


class Reparacion(Base):
    __tablename__ = "reparaciones"

    id = Column(Integer, primary_key=True, index=True)

    nombre_cliente = Column(String(150), nullable=False, index=True)
    contacto = Column(String(150), nullable=True)
    modelo = Column(String(150), nullable=False)
    material_original = Column(String(100), nullable=True)
    condicion = Column(Text, nullable=True)
    materiales_usados = Column(Text, nullable=True)

    costo_total = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    anticipo = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    piezas = Column(Integer, nullable=False, default=1)

    fecha_ingreso = Column(Date, nullable=False, default=date.today)
    fecha_entrega = Column(Date, nullable=True)

    estado = Column(
        estado_enum,
        nullable=False,
        default=ReparacionEstado.pendiente,
        index=True,
    )
    prioridad = Column(
        Enum(Prioridad, name="reparacion_prioridad", values_callable=_values),
        nullable=False,
        default=Prioridad.media,
    )
    notas = Column(Text, nullable=True)
    trabajador_asignado = Column(String(100), nullable=True)

    imagen_url = Column(String(255), nullable=True)
    recibo_url = Column(String(255), nullable=True)

    creado_por = Column(String(100), nullable=False, default="Sistema")
    activo = Column(Boolean, nullable=False, default=True)
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)


class HistorialReparacion(Base):
    """Un renglón por cada transición de estado (incluida la creación)."""

    __tablename__ = "historial_reparaciones"

    id = Column(Integer, primary_key=True, index=True)
    reparacion_id = Column(Integer, ForeignKey("reparaciones.id"), nullable=False, index=True)
    fecha = Column(Date, nullable=False, default=date.today)
    estado_anterior = Column(estado_enum, nullable=True)
    estado = Column(estado_enum, nullable=False)
    notas = Column(Text, nullable=True)
    usuario_id = Column(String(100), nullable=True)
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)

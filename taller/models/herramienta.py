# taller/models/herramienta.py
import enum
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum, Integer, String, Text

from taller.db.base import Base


class HerramientaEstatus(str, enum.Enum):
    disponible = "Disponible"
    en_uso = "En Uso"


class Herramienta(Base):
    """
    Herramienta del taller con contador de unidades disponibles.

    El estatus y los datos de asignación son un único "slot": registran la
    última asignación aunque haya varias unidades fuera al mismo tiempo.
    """

    __tablename__ = "herramientas"
    __table_args__ = (
        CheckConstraint(
            "cantidad_disponible >= 0 AND cantidad_disponible <= cantidad_total",
            name="ck_herramientas_disponible_en_rango",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False, index=True)
    descripcion = Column(Text, nullable=True)
    cantidad_total = Column(Integer, nullable=False)
    cantidad_disponible = Column(Integer, nullable=False)
    estatus = Column(
        Enum(
            HerramientaEstatus,
            name="herramienta_estatus",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=HerramientaEstatus.disponible,
        index=True,
    )
    usuario_asignado = Column(String(100), nullable=True)
    asignado_por = Column(String(100), nullable=True)
    fecha_asignacion = Column(DateTime, nullable=True)
    activo = Column(Boolean, nullable=False, default=True)
    creado_por = Column(String(100), nullable=True)
    fecha_creacion = Column(DateTime, nullable=False, default=datetime.utcnow)
    fecha_actualizacion = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

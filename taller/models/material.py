# taller/models/material.py
import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text

from taller.db.base import Base


class TipoMovimiento(str, enum.Enum):
    entrada = "entrada"
    salida = "salida"
    consumo = "consumo"


class MateriaPrima(Base):
    __tablename__ = "materias_primas"
    __table_args__ = (
        CheckConstraint("cantidad >= 0", name="ck_materias_primas_cantidad_no_negativa"),
    )

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False, index=True)
    descripcion = Column(Text, nullable=True)
    cantidad = Column(Integer, nullable=False, default=0)
    unidad = Column(String(50), nullable=False)
    stock_minimo = Column(Integer, nullable=False, default=0)
    costo = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    categoria = Column(String(100), nullable=False, index=True)
    activo = Column(Boolean, nullable=False, default=True)
    creado_por = Column(String(100), nullable=True)
    fecha_creacion = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def bajo_stock(self) -> bool:
        return (self.cantidad or 0) <= (self.stock_minimo or 0)


class MovimientoMp(Base):
    """Entrada del libro de movimientos de materia prima. Solo se inserta."""

    __tablename__ = "movimientos_mp"

    id = Column(Integer, primary_key=True, index=True)
    materia_id = Column(Integer, ForeignKey("materias_primas.id"), nullable=False, index=True)
    fecha = Column(Date, nullable=False, default=date.today)
    tipo = Column(
        Enum(
            TipoMovimiento,
            name="tipo_movimiento",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    cantidad = Column(Integer, nullable=False)
    usuario_id = Column(String(100), nullable=True)
    nota = Column(String(255), nullable=True)
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def cantidad_con_signo(self) -> int:
        if self.tipo == TipoMovimiento.entrada:
            return abs(self.cantidad)
        return -abs(self.cantidad)

# taller/models/usage.py
import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from taller.db.base import Base


class TipoDocumento(str, enum.Enum):
    reparacion = "reparacion"
    pedido = "pedido"


class MaterialUtilizado(Base):
    """Consumo de materia prima atribuido a una reparación o un pedido."""

    __tablename__ = "materiales_utilizados"
    __table_args__ = (
        Index("ix_mat_util_documento", "tipo_documento", "documento_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tipo_documento = Column(
        Enum(
            TipoDocumento,
            name="tipo_documento",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    documento_id = Column(Integer, nullable=False)
    materia_id = Column(Integer, ForeignKey("materias_primas.id"), nullable=False, index=True)
    cantidad = Column(Integer, nullable=False)
    costo_unitario = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    fecha = Column(Date, nullable=False, default=date.today)
    usuario_id = Column(String(100), nullable=True)
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)

    materia = relationship("MateriaPrima")

    @property
    def costo_total(self) -> Decimal:
        return Decimal(str(self.costo_unitario or 0)) * (self.cantidad or 0)

# taller/models/pedido.py
from datetime import date, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from taller.db.base import Base


class Pedido(Base):
    __tablename__ = "pedidos"

    id = Column(Integer, primary_key=True, index=True)

    cliente_nombre = Column(String(150), nullable=False, index=True)
    cliente_contacto = Column(String(150), nullable=True)
    fecha_entrega = Column(Date, nullable=True)
    notas = Column(Text, nullable=True)

    # Etapa libre: "Pendiente por realizar" -> ... -> "Finalizado"
    etapa = Column(String(100), nullable=False, index=True)

    total = Column(Numeric(12, 2), nullable=False, default=0)
    anticipo = Column(Numeric(12, 2), nullable=False, default=0)
    total_cantidad = Column(Integer, nullable=False, default=0)
    resumen_producto = Column(String(255), nullable=True)

    creado_por = Column(String(100), nullable=False, default="admin")
    fecha_creacion = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    fecha_actualizacion = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    productos = relationship(
        "PedidoProducto",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="PedidoProducto.orden",
    )
    etapas = relationship(
        "PedidoEtapa",
        back_populates="pedido",
        cascade="all, delete-orphan",
        order_by="PedidoEtapa.id",
    )


class PedidoProducto(Base):
    __tablename__ = "pedido_productos"

    id = Column(Integer, primary_key=True, index=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id"), nullable=False, index=True)
    # referencia al catálogo de productos (fuera de este servicio)
    producto_id = Column(Integer, nullable=True, index=True)
    producto_nombre = Column(String(150), nullable=False)
    cantidad = Column(Integer, nullable=False)
    precio_unitario = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    orden = Column(Integer, nullable=True)

    pedido = relationship("Pedido", back_populates="productos")


class PedidoEtapa(Base):
    __tablename__ = "pedido_etapas"

    id = Column(Integer, primary_key=True, index=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id"), nullable=False, index=True)
    etapa = Column(String(100), nullable=False)
    notas = Column(Text, nullable=True)
    usuario = Column(String(100), nullable=False, default="sistema")
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)

    pedido = relationship("Pedido", back_populates="etapas")


class Venta(Base):
    """Venta generada al finalizar un pedido (una por renglón)."""

    __tablename__ = "ventas"

    id = Column(Integer, primary_key=True, index=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id"), nullable=True, index=True)
    producto_id = Column(Integer, nullable=True)
    producto_nombre = Column(String(150), nullable=True)
    cantidad = Column(Integer, nullable=False)
    precio_unitario = Column(Numeric(12, 2), nullable=False, default=0)
    precio_total = Column(Numeric(12, 2), nullable=False, default=0)
    fecha = Column(Date, nullable=False, default=date.today)
    tipo = Column(String(20), nullable=False, default="pedido")
    usuario_registro = Column(String(100), nullable=True)
    fecha_registro = Column(DateTime, nullable=False, default=datetime.utcnow)

"""create taller core tables

Revision ID: 4a7e2c91d0b3
Revises:
Create Date: 2026-10-17 10:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "4a7e2c91d0b3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TIPO_MOVIMIENTO = ("entrada", "salida", "consumo")
TIPO_DOCUMENTO = ("reparacion", "pedido")
HERRAMIENTA_ESTATUS = ("Disponible", "En Uso")
REPARACION_ESTADO = ("Pendiente", "En Proceso", "Completado", "Entregado")
REPARACION_PRIORIDAD = ("Baja", "Media", "Alta", "Urgente")

ENUMS = {
    "tipo_movimiento": TIPO_MOVIMIENTO,
    "tipo_documento": TIPO_DOCUMENTO,
    "herramienta_estatus": HERRAMIENTA_ESTATUS,
    "reparacion_estado": REPARACION_ESTADO,
    "reparacion_prioridad": REPARACION_PRIORIDAD,
}


def _enum(name: str) -> sa.Enum:
    """En Postgres el tipo ya existe (se crea al inicio); en SQLite es VARCHAR + CHECK."""
    if op.get_bind().dialect.name == "postgresql":
        return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)
    return sa.Enum(*ENUMS[name], name=name)


def upgrade() -> None:
    """Upgrade schema: inventario, herramientas, reparaciones y pedidos."""
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "materias_primas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(length=100), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("cantidad", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unidad", sa.String(length=50), nullable=False),
        sa.Column("stock_minimo", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("costo", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("categoria", sa.String(length=100), nullable=False),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("creado_por", sa.String(length=100), nullable=True),
        sa.Column("fecha_creacion", sa.DateTime(), nullable=False),
        sa.CheckConstraint("cantidad >= 0", name="ck_materias_primas_cantidad_no_negativa"),
    )
    op.create_index("ix_materias_primas_id", "materias_primas", ["id"])
    op.create_index("ix_materias_primas_nombre", "materias_primas", ["nombre"])
    op.create_index("ix_materias_primas_categoria", "materias_primas", ["categoria"])

    op.create_table(
        "movimientos_mp",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "materia_id",
            sa.Integer(),
            sa.ForeignKey("materias_primas.id"),
            nullable=False,
        ),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("tipo", _enum("tipo_movimiento"), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("usuario_id", sa.String(length=100), nullable=True),
        sa.Column("nota", sa.String(length=255), nullable=True),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_movimientos_mp_id", "movimientos_mp", ["id"])
    op.create_index("ix_movimientos_mp_materia_id", "movimientos_mp", ["materia_id"])

    op.create_table(
        "materiales_utilizados",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "tipo_documento",
            _enum("tipo_documento"),
            nullable=False,
        ),
        sa.Column("documento_id", sa.Integer(), nullable=False),
        sa.Column(
            "materia_id",
            sa.Integer(),
            sa.ForeignKey("materias_primas.id"),
            nullable=False,
        ),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("costo_unitario", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("usuario_id", sa.String(length=100), nullable=True),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_materiales_utilizados_id", "materiales_utilizados", ["id"])
    op.create_index(
        "ix_materiales_utilizados_materia_id",
        "materiales_utilizados",
        ["materia_id"],
    )
    op.create_index(
        "ix_mat_util_documento",
        "materiales_utilizados",
        ["tipo_documento", "documento_id"],
    )

    op.create_table(
        "herramientas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(length=100), nullable=False),
        sa.Column("descripcion", sa.Text(), nullable=True),
        sa.Column("cantidad_total", sa.Integer(), nullable=False),
        sa.Column("cantidad_disponible", sa.Integer(), nullable=False),
        sa.Column(
            "estatus",
            _enum("herramienta_estatus"),
            nullable=False,
        ),
        sa.Column("usuario_asignado", sa.String(length=100), nullable=True),
        sa.Column("asignado_por", sa.String(length=100), nullable=True),
        sa.Column("fecha_asignacion", sa.DateTime(), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("creado_por", sa.String(length=100), nullable=True),
        sa.Column("fecha_creacion", sa.DateTime(), nullable=False),
        sa.Column("fecha_actualizacion", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "cantidad_disponible >= 0 AND cantidad_disponible <= cantidad_total",
            name="ck_herramientas_disponible_en_rango",
        ),
    )
    op.create_index("ix_herramientas_id", "herramientas", ["id"])
    op.create_index("ix_herramientas_nombre", "herramientas", ["nombre"])
    op.create_index("ix_herramientas_estatus", "herramientas", ["estatus"])

    op.create_table(
        "reparaciones",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre_cliente", sa.String(length=150), nullable=False),
        sa.Column("contacto", sa.String(length=150), nullable=True),
        sa.Column("modelo", sa.String(length=150), nullable=False),
        sa.Column("material_original", sa.String(length=100), nullable=True),
        sa.Column("condicion", sa.Text(), nullable=True),
        sa.Column("materiales_usados", sa.Text(), nullable=True),
        sa.Column("costo_total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("anticipo", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("piezas", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("fecha_ingreso", sa.Date(), nullable=False),
        sa.Column("fecha_entrega", sa.Date(), nullable=True),
        sa.Column(
            "estado",
            _enum("reparacion_estado"),
            nullable=False,
        ),
        sa.Column(
            "prioridad",
            _enum("reparacion_prioridad"),
            nullable=False,
        ),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("trabajador_asignado", sa.String(length=100), nullable=True),
        sa.Column("imagen_url", sa.String(length=255), nullable=True),
        sa.Column("recibo_url", sa.String(length=255), nullable=True),
        sa.Column("creado_por", sa.String(length=100), nullable=False),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_reparaciones_id", "reparaciones", ["id"])
    op.create_index("ix_reparaciones_nombre_cliente", "reparaciones", ["nombre_cliente"])
    op.create_index("ix_reparaciones_estado", "reparaciones", ["estado"])

    op.create_table(
        "historial_reparaciones",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "reparacion_id",
            sa.Integer(),
            sa.ForeignKey("reparaciones.id"),
            nullable=False,
        ),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("estado_anterior", _enum("reparacion_estado"), nullable=True),
        sa.Column("estado", _enum("reparacion_estado"), nullable=False),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("usuario_id", sa.String(length=100), nullable=True),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_historial_reparaciones_id", "historial_reparaciones", ["id"])
    op.create_index(
        "ix_historial_reparaciones_reparacion_id",
        "historial_reparaciones",
        ["reparacion_id"],
    )

    op.create_table(
        "pedidos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cliente_nombre", sa.String(length=150), nullable=False),
        sa.Column("cliente_contacto", sa.String(length=150), nullable=True),
        sa.Column("fecha_entrega", sa.Date(), nullable=True),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("etapa", sa.String(length=100), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("anticipo", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_cantidad", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resumen_producto", sa.String(length=255), nullable=True),
        sa.Column("creado_por", sa.String(length=100), nullable=False),
        sa.Column("fecha_creacion", sa.DateTime(), nullable=False),
        sa.Column("fecha_actualizacion", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_pedidos_id", "pedidos", ["id"])
    op.create_index("ix_pedidos_cliente_nombre", "pedidos", ["cliente_nombre"])
    op.create_index("ix_pedidos_etapa", "pedidos", ["etapa"])
    op.create_index("ix_pedidos_fecha_creacion", "pedidos", ["fecha_creacion"])

    op.create_table(
        "pedido_productos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pedido_id", sa.Integer(), sa.ForeignKey("pedidos.id"), nullable=False),
        sa.Column("producto_id", sa.Integer(), nullable=True),
        sa.Column("producto_nombre", sa.String(length=150), nullable=False),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("precio_unitario", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("orden", sa.Integer(), nullable=True),
    )
    op.create_index("ix_pedido_productos_id", "pedido_productos", ["id"])
    op.create_index("ix_pedido_productos_pedido_id", "pedido_productos", ["pedido_id"])
    op.create_index("ix_pedido_productos_producto_id", "pedido_productos", ["producto_id"])

    op.create_table(
        "pedido_etapas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pedido_id", sa.Integer(), sa.ForeignKey("pedidos.id"), nullable=False),
        sa.Column("etapa", sa.String(length=100), nullable=False),
        sa.Column("notas", sa.Text(), nullable=True),
        sa.Column("usuario", sa.String(length=100), nullable=False),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_pedido_etapas_id", "pedido_etapas", ["id"])
    op.create_index("ix_pedido_etapas_pedido_id", "pedido_etapas", ["pedido_id"])

    op.create_table(
        "ventas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pedido_id", sa.Integer(), sa.ForeignKey("pedidos.id"), nullable=True),
        sa.Column("producto_id", sa.Integer(), nullable=True),
        sa.Column("producto_nombre", sa.String(length=150), nullable=True),
        sa.Column("cantidad", sa.Integer(), nullable=False),
        sa.Column("precio_unitario", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("precio_total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("tipo", sa.String(length=20), nullable=False, server_default="pedido"),
        sa.Column("usuario_registro", sa.String(length=100), nullable=True),
        sa.Column("fecha_registro", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ventas_id", "ventas", ["id"])
    op.create_index("ix_ventas_pedido_id", "ventas", ["pedido_id"])


def downgrade() -> None:
    """Downgrade schema: drop all taller core tables."""
    op.drop_index("ix_ventas_pedido_id", table_name="ventas")
    op.drop_index("ix_ventas_id", table_name="ventas")
    op.drop_table("ventas")

    op.drop_index("ix_pedido_etapas_pedido_id", table_name="pedido_etapas")
    op.drop_index("ix_pedido_etapas_id", table_name="pedido_etapas")
    op.drop_table("pedido_etapas")

    op.drop_index("ix_pedido_productos_producto_id", table_name="pedido_productos")
    op.drop_index("ix_pedido_productos_pedido_id", table_name="pedido_productos")
    op.drop_index("ix_pedido_productos_id", table_name="pedido_productos")
    op.drop_table("pedido_productos")

    op.drop_index("ix_pedidos_fecha_creacion", table_name="pedidos")
    op.drop_index("ix_pedidos_etapa", table_name="pedidos")
    op.drop_index("ix_pedidos_cliente_nombre", table_name="pedidos")
    op.drop_index("ix_pedidos_id", table_name="pedidos")
    op.drop_table("pedidos")

    op.drop_index("ix_historial_reparaciones_reparacion_id", table_name="historial_reparaciones")
    op.drop_index("ix_historial_reparaciones_id", table_name="historial_reparaciones")
    op.drop_table("historial_reparaciones")

    op.drop_index("ix_reparaciones_estado", table_name="reparaciones")
    op.drop_index("ix_reparaciones_nombre_cliente", table_name="reparaciones")
    op.drop_index("ix_reparaciones_id", table_name="reparaciones")
    op.drop_table("reparaciones")

    op.drop_index("ix_herramientas_estatus", table_name="herramientas")
    op.drop_index("ix_herramientas_nombre", table_name="herramientas")
    op.drop_index("ix_herramientas_id", table_name="herramientas")
    op.drop_table("herramientas")

    op.drop_index("ix_mat_util_documento", table_name="materiales_utilizados")
    op.drop_index("ix_materiales_utilizados_materia_id", table_name="materiales_utilizados")
    op.drop_index("ix_materiales_utilizados_id", table_name="materiales_utilizados")
    op.drop_table("materiales_utilizados")

    op.drop_index("ix_movimientos_mp_materia_id", table_name="movimientos_mp")
    op.drop_index("ix_movimientos_mp_id", table_name="movimientos_mp")
    op.drop_table("movimientos_mp")

    op.drop_index("ix_materias_primas_categoria", table_name="materias_primas")
    op.drop_index("ix_materias_primas_nombre", table_name="materias_primas")
    op.drop_index("ix_materias_primas_id", table_name="materias_primas")
    op.drop_table("materias_primas")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)

"""
Material usage ledger tests.

Verifies:
- record_usage attributes consumption without touching stock
- consume_material decrements stock with a consumo movement atomically
- cost_for_document sums quantity x unit cost
- Usage rows are ordered newest first
"""

from decimal import Decimal

import pytest

from taller.core.errors import ConflictError, NotFoundError, ValidationError
from taller.models import MaterialUtilizado, MovimientoMp, TipoDocumento, TipoMovimiento
from taller.services import stock_service, usage_service


class TestRecordUsage:
    """Registro de consumo sin descontar existencia."""

    def test_does_not_change_stock(self, db, make_material, make_reparacion):
        material = make_material()
        reparacion = make_reparacion()

        usage = usage_service.record_usage(
            db,
            tipo_documento="reparacion",
            documento_id=reparacion.id,
            materia_id=material.id,
            cantidad=2,
            costo_unitario="50.00",
            usuario_id="ana",
        )

        assert usage.id is not None
        assert usage.tipo_documento == TipoDocumento.reparacion
        assert stock_service.get_material(db, material.id).cantidad == 10
        assert db.query(MovimientoMp).filter(MovimientoMp.materia_id == material.id).count() == 1

    def test_unknown_document(self, db, make_material):
        material = make_material()

        with pytest.raises(NotFoundError):
            usage_service.record_usage(
                db,
                tipo_documento=TipoDocumento.pedido,
                documento_id=42,
                materia_id=material.id,
                cantidad=1,
                costo_unitario=10,
            )

    def test_unknown_document_kind(self, db):
        with pytest.raises(ValidationError) as exc_info:
            usage_service.record_usage(
                db,
                tipo_documento="factura",
                documento_id=1,
                materia_id=1,
                cantidad=1,
                costo_unitario=10,
            )

        assert exc_info.value.field == "tipo_documento"

    @pytest.mark.parametrize("cantidad,costo", [(0, 10), (-2, 10), (1, -1), (1, "x")])
    def test_invalid_amounts(self, db, make_material, make_reparacion, cantidad, costo):
        material = make_material()
        reparacion = make_reparacion()

        with pytest.raises(ValidationError):
            usage_service.record_usage(
                db,
                tipo_documento="reparacion",
                documento_id=reparacion.id,
                materia_id=material.id,
                cantidad=cantidad,
                costo_unitario=costo,
            )

        assert db.query(MaterialUtilizado).count() == 0


class TestConsumeMaterial:
    """Consumo con descuento de existencia."""

    def test_decrements_stock_and_writes_consumo(self, db, make_material, make_pedido):
        material = make_material()
        pedido = make_pedido()

        usage = usage_service.consume_material(
            db,
            tipo_documento="pedido",
            documento_id=pedido.id,
            materia_id=material.id,
            cantidad=4,
            usuario_id="luis",
        )

        assert usage.costo_unitario == Decimal("50")
        assert stock_service.get_material(db, material.id).cantidad == 6
        ultimo = stock_service.list_history(db, material.id)[0]
        assert ultimo.tipo == TipoMovimiento.consumo
        assert ultimo.cantidad == 4
        assert stock_service.ledger_balance(db, material.id)["consistente"] is True

    def test_insufficient_stock_writes_nothing(self, db, make_material, make_pedido):
        material = make_material(cantidad=3)
        pedido = make_pedido()

        with pytest.raises(ConflictError):
            usage_service.consume_material(
                db,
                tipo_documento="pedido",
                documento_id=pedido.id,
                materia_id=material.id,
                cantidad=5,
            )

        assert db.query(MaterialUtilizado).count() == 0
        assert stock_service.get_material(db, material.id).cantidad == 3
        assert len(stock_service.list_history(db, material.id)) == 1


class TestDocumentQueries:
    """Consultas por documento."""

    def test_cost_and_order(self, db, make_material, make_reparacion):
        resina = make_material(nombre="Resina", costo=50)
        yeso = make_material(nombre="Yeso", costo="18.50")
        reparacion = make_reparacion()

        first = usage_service.record_usage(
            db,
            tipo_documento="reparacion",
            documento_id=reparacion.id,
            materia_id=resina.id,
            cantidad=2,
            costo_unitario=50,
        )
        second = usage_service.record_usage(
            db,
            tipo_documento="reparacion",
            documento_id=reparacion.id,
            materia_id=yeso.id,
            cantidad=3,
            costo_unitario="18.50",
        )

        usos = usage_service.usage_for_document(db, "reparacion", reparacion.id)
        assert [u.id for u in usos] == [second.id, first.id]
        assert usage_service.cost_for_document(db, "reparacion", reparacion.id) == Decimal("155.50")

    def test_empty_document_costs_zero(self, db):
        assert usage_service.cost_for_document(db, "pedido", 1) == Decimal("0")


class TestDeleteUsage:
    """Corrección de consumos."""

    def test_hard_delete(self, db, make_material, make_reparacion):
        material = make_material()
        reparacion = make_reparacion()
        usage = usage_service.record_usage(
            db,
            tipo_documento="reparacion",
            documento_id=reparacion.id,
            materia_id=material.id,
            cantidad=1,
            costo_unitario=50,
        )

        usage_service.delete_usage(db, usage.id)

        assert db.get(MaterialUtilizado, usage.id) is None

    def test_missing_usage(self, db):
        with pytest.raises(NotFoundError):
            usage_service.delete_usage(db, 123)

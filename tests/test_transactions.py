"""
Transaction boundary tests.

Verifies:
- A storage failure while writing the audit row rolls back the stock or state change
- The failure surfaces as StorageError and is logged as storage_failure
"""

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from taller.core.errors import StorageError
from taller.models import (
    Herramienta,
    HistorialReparacion,
    MateriaPrima,
    MovimientoMp,
    Pedido,
    PedidoEtapa,
    PedidoProducto,
    ReparacionEstado,
)
from taller.services import herramienta_service, pedido_service, reparacion_service, stock_service


@pytest.fixture
def fail_on():
    """
    Make the next flush of ``model`` fail like a lost connection.

    Usage::

        fail_on(MovimientoMp)                  # INSERT fails
        fail_on(Herramienta, "before_update")  # UPDATE fails
    """
    registered = []

    def _arm(model, identifier: str = "before_insert"):
        def _fail(mapper, connection, target):
            raise OperationalError("flush", {}, Exception("disk I/O error"))

        event.listen(model, identifier, _fail)
        registered.append((model, identifier, _fail))

    yield _arm

    for model, identifier, fn in registered:
        event.remove(model, identifier, fn)


def _storage_failures(captured_logs, operation: str) -> list[dict]:
    return [
        r for r in captured_logs()
        if r["message"] == "storage_failure" and r.get("operation") == operation
    ]


class TestStockRollback:
    """Existencia y libro de movimientos van juntos."""

    def test_failed_movement_keeps_quantity(self, db, make_material, fail_on, captured_logs):
        material = make_material()
        fail_on(MovimientoMp)

        with pytest.raises(StorageError):
            stock_service.update_stock(db, material.id, nueva_cantidad=3)

        assert db.get(MateriaPrima, material.id).cantidad == 10
        assert db.query(MovimientoMp).filter(MovimientoMp.materia_id == material.id).count() == 1
        assert len(_storage_failures(captured_logs, "update_stock")) == 1


class TestHerramientaRollback:
    """Asignación de herramientas."""

    def test_failed_assign_keeps_available_units(self, db, fail_on, captured_logs):
        herramienta = herramienta_service.create_herramienta(db, nombre="Taladro", cantidad_total=2)
        fail_on(Herramienta, "before_update")

        with pytest.raises(StorageError):
            herramienta_service.assign(db, herramienta.id, usuario_asignado="luis")

        recargada = db.get(Herramienta, herramienta.id)
        assert recargada.cantidad_disponible == 2
        assert recargada.usuario_asignado is None
        assert len(_storage_failures(captured_logs, "assign_tool")) == 1


class TestReparacionRollback:
    """Estado e historial de reparaciones."""

    def test_failed_history_row_keeps_state(self, db, make_reparacion, fail_on, captured_logs):
        reparacion = make_reparacion()
        fail_on(HistorialReparacion)

        with pytest.raises(StorageError):
            reparacion_service.change_estado(db, reparacion.id, "Completado", usuario_id="ana")

        assert reparacion_service.get_reparacion(db, reparacion.id).estado == ReparacionEstado.pendiente
        assert (
            db.query(HistorialReparacion)
            .filter(HistorialReparacion.reparacion_id == reparacion.id)
            .count()
            == 1
        )
        assert len(_storage_failures(captured_logs, "change_estado")) == 1


class TestPedidoRollback:
    """Encabezado, renglones y etapas de pedidos."""

    def test_failed_stage_row_leaves_no_order(self, db, make_pedido, fail_on, captured_logs):
        fail_on(PedidoEtapa)

        with pytest.raises(StorageError):
            make_pedido()

        assert db.query(Pedido).count() == 0
        assert db.query(PedidoProducto).count() == 0
        assert db.query(PedidoEtapa).count() == 0
        assert len(_storage_failures(captured_logs, "create_pedido")) == 1

    def test_failed_stage_row_keeps_current_stage(self, db, make_pedido, settings, fail_on):
        pedido = make_pedido()
        fail_on(PedidoEtapa)

        with pytest.raises(StorageError):
            pedido_service.advance_etapa(db, pedido.id, "En producción", settings=settings)

        assert pedido_service.get_pedido(db, pedido.id).etapa == "Pendiente por realizar"
        assert db.query(PedidoEtapa).filter(PedidoEtapa.pedido_id == pedido.id).count() == 1

"""
Repair workflow tests.

Verifies:
- Defaults on creation and the initial history row
- Any-to-any state changes, each with a persisted history row
- Pending balance law max(0, costo_total - anticipo)
- Receipt projection with material costs and unique receipt numbers
"""

from datetime import date
from decimal import Decimal

import pytest

from taller.core.errors import NotFoundError, ValidationError
from taller.models import HistorialReparacion, Prioridad, Reparacion, ReparacionEstado
from taller.services import reparacion_service, usage_service


class TestCreate:
    """Alta de reparaciones."""

    def test_defaults(self, db, make_reparacion):
        reparacion = make_reparacion()

        assert reparacion.estado == ReparacionEstado.pendiente
        assert reparacion.prioridad == Prioridad.media
        assert reparacion.creado_por == "Sistema"
        assert reparacion.piezas == 1
        assert reparacion.fecha_ingreso == date.today()
        assert reparacion.material_original == "Yeso frio"

    def test_initial_history_row(self, db, make_reparacion):
        reparacion = make_reparacion(creado_por="ana")

        historial = reparacion_service.list_historial(db, reparacion.id)

        assert len(historial) == 1
        assert historial[0].estado_anterior is None
        assert historial[0].estado == ReparacionEstado.pendiente
        assert historial[0].usuario_id == "ana"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"nombre_cliente": ""},
            {"modelo": "   "},
            {"costo_total": -1},
            {"anticipo": -10},
            {"piezas": 0},
            {"estado": "Cancelado"},
            {"prioridad": "Altísima"},
        ],
    )
    def test_invalid_input_leaves_nothing(self, db, make_reparacion, overrides):
        with pytest.raises(ValidationError):
            make_reparacion(**overrides)

        assert db.query(Reparacion).count() == 0
        assert db.query(HistorialReparacion).count() == 0

    def test_fixed_unit_fraction_in_materials_is_rejected(self, db, make_reparacion):
        with pytest.raises(ValidationError, match="pincel"):
            make_reparacion(materiales_usados="1/2 pincel, 1/3 litro resina")

    def test_fractional_materials_are_accepted(self, db, make_reparacion):
        reparacion = make_reparacion(materiales_usados="2 pincel, 1/3 litro resina, lija")

        assert reparacion.materiales_usados == "2 pincel, 1/3 litro resina, lija"


class TestChangeEstado:
    """Cambios de estado."""

    def test_scenario_and_history(self, db, make_reparacion):
        reparacion = make_reparacion()
        assert reparacion_service.pending_balance(reparacion) == Decimal("300")

        updated = reparacion_service.change_estado(
            db, reparacion.id, "Entregado", usuario_id="ana", notas="Entregada al cliente"
        )
        assert updated.estado == ReparacionEstado.entregado

        with pytest.raises(ValidationError, match="Estado no valido"):
            reparacion_service.change_estado(db, reparacion.id, "Inexistente")

        historial = reparacion_service.list_historial(db, reparacion.id)
        assert len(historial) == 2
        assert historial[0].estado_anterior == ReparacionEstado.pendiente
        assert historial[0].estado == ReparacionEstado.entregado
        assert historial[0].notas == "Entregada al cliente"

    def test_states_can_go_backwards(self, db, make_reparacion):
        reparacion = make_reparacion()
        reparacion_service.change_estado(db, reparacion.id, ReparacionEstado.completado)

        updated = reparacion_service.change_estado(db, reparacion.id, "En Proceso")

        assert updated.estado == ReparacionEstado.en_proceso
        assert len(reparacion_service.list_historial(db, reparacion.id)) == 3

    def test_missing_repair(self, db):
        with pytest.raises(NotFoundError):
            reparacion_service.change_estado(db, 77, "Completado")


class TestUpdateAndDelete:
    """Edición completa y baja lógica."""

    def test_update_appends_history_only_on_state_change(self, db, make_reparacion):
        reparacion = make_reparacion()

        reparacion_service.update_reparacion(
            db, reparacion.id, nombre_cliente="Ana María", modelo="Figura X", costo_total=600
        )
        assert len(reparacion_service.list_historial(db, reparacion.id)) == 1

        updated = reparacion_service.update_reparacion(
            db,
            reparacion.id,
            nombre_cliente="Ana María",
            modelo="Figura X",
            costo_total=600,
            estado="Completado",
        )
        assert updated.nombre_cliente == "Ana María"
        assert updated.costo_total == Decimal("600")
        assert len(reparacion_service.list_historial(db, reparacion.id)) == 2

    def test_update_requires_id(self, db):
        with pytest.raises(ValidationError):
            reparacion_service.update_reparacion(db, None, nombre_cliente="Ana", modelo="X")

    def test_delete_is_logical(self, db, make_reparacion):
        reparacion = make_reparacion()

        reparacion_service.delete_reparacion(db, reparacion.id)

        with pytest.raises(NotFoundError):
            reparacion_service.get_reparacion(db, reparacion.id)
        assert db.get(Reparacion, reparacion.id).activo is False
        assert reparacion_service.list_reparaciones(db) == []
        assert len(reparacion_service.list_historial(db, reparacion.id)) == 1


class TestPendingBalance:
    """Saldo pendiente."""

    @pytest.mark.parametrize(
        "costo,anticipo,esperado",
        [(500, 200, "300"), (500, 500, "0"), (100, 250, "0"), (0, 0, "0"), ("99.90", "10.45", "89.45")],
    )
    def test_balance_law(self, db, make_reparacion, costo, anticipo, esperado):
        reparacion = make_reparacion(costo_total=costo, anticipo=anticipo)

        assert reparacion_service.pending_balance(reparacion) == Decimal(esperado)


class TestRecibo:
    """Recibo de reparación."""

    def test_projection(self, db, make_reparacion, make_material):
        material = make_material()
        reparacion = make_reparacion(trabajador_asignado="Pedro", condicion="Brazo roto")
        usage_service.record_usage(
            db,
            tipo_documento="reparacion",
            documento_id=reparacion.id,
            materia_id=material.id,
            cantidad=2,
            costo_unitario=50,
        )

        recibo = reparacion_service.generate_recibo(db, reparacion.id)

        assert recibo["numero_recibo"].startswith("REC-")
        assert recibo["cliente"] == "Ana"
        assert recibo["descripcion"] == "Brazo roto"
        assert recibo["saldo_pendiente"] == Decimal("300")
        assert recibo["estado"] == "Pendiente"
        assert recibo["trabajador_asignado"] == "Pedro"
        assert recibo["costo_materiales"] == Decimal("100")
        assert len(recibo["materiales"]) == 1

    def test_receipt_numbers_are_unique(self, db, make_reparacion):
        reparacion = make_reparacion()

        numeros = {reparacion_service.generate_recibo(db, reparacion.id)["numero_recibo"] for _ in range(20)}

        assert len(numeros) == 20


class TestListing:
    """Filtros de listado."""

    def test_filters(self, db, make_reparacion):
        make_reparacion(nombre_cliente="Ana", modelo="Figura X")
        beto = make_reparacion(nombre_cliente="Beto", modelo="Nacimiento")
        reparacion_service.change_estado(db, beto.id, "En Proceso")

        assert [r.nombre_cliente for r in reparacion_service.list_reparaciones(db, estado="En Proceso")] == ["Beto"]
        assert [r.nombre_cliente for r in reparacion_service.list_reparaciones(db, cliente="an")] == ["Ana"]
        assert [r.modelo for r in reparacion_service.list_reparaciones(db, modelo="naci")] == ["Nacimiento"]

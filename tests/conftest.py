"""
Fixtures for the taller test suite.

Provides:
- an in-memory SQLite Storage per test (StaticPool, fresh schema)
- a session bound to it with the append-only listeners registered
- JSON log capture for the ``taller`` logger hierarchy
- a FastAPI TestClient wired to its own in-memory Storage
"""

import json
import logging
from io import StringIO

import pytest
from fastapi.testclient import TestClient

from taller.core.config import Settings
from taller.core.logging_config import LogContext, StructuredFormatter
from taller.db.immutability import register_immutability_listeners
from taller.db.session import Storage


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENV="test",
        DEBUG=False,
        DATABASE_URL="sqlite://",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def storage(settings):
    storage = Storage.from_settings(settings)
    storage.create_all()
    register_immutability_listeners()
    yield storage
    storage.drop_all()
    storage.dispose()


@pytest.fixture
def db(storage):
    session = storage.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def captured_logs():
    """
    Capture taller logs as parsed JSON dicts.

    Usage::

        def test_something(db, captured_logs):
            stock_service.update_stock(db, material.id, nueva_cantidad=3)
            logs = captured_logs()
            assert any(r["message"] == "stock_updated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("taller")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


@pytest.fixture
def client(settings, storage):
    from taller.main import create_app

    app = create_app(settings=settings, storage=storage)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_material(db):
    """Factory for materials created through the stock service."""
    from taller.services import stock_service

    def _make(**overrides):
        data = {
            "nombre": "Resina",
            "cantidad": 10,
            "unidad": "litro",
            "stock_minimo": 2,
            "costo": 50,
            "categoria": "Resinas",
            "creado_por": "ana",
        }
        data.update(overrides)
        return stock_service.create_material(db, **data)

    return _make


@pytest.fixture
def make_reparacion(db):
    from taller.services import reparacion_service

    def _make(**overrides):
        data = {
            "nombre_cliente": "Ana",
            "modelo": "Figura X",
            "costo_total": 500,
            "anticipo": 200,
        }
        data.update(overrides)
        return reparacion_service.create_reparacion(db, **data)

    return _make


@pytest.fixture
def make_pedido(db, settings):
    from taller.services import pedido_service

    def _make(**overrides):
        data = {
            "cliente_nombre": "Luis",
            "productos": [
                {"producto_nombre": "Virgen de Guadalupe 40cm", "cantidad": 2, "precio_unitario": 100},
                {"producto_nombre": "Angel", "cantidad": 1, "precio_unitario": 50},
            ],
            "total": 250,
            "settings": settings,
        }
        data.update(overrides)
        return pedido_service.create_pedido(db, **data)

    return _make

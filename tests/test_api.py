"""
HTTP boundary tests.

Verifies:
- Routes delegate to the services and serialize typed responses
- TallerError subclasses map to status codes with {"detail", "code"}
- The X-Usuario header is recorded as the acting user
"""

from datetime import datetime


def _crear_material(client, **overrides):
    payload = {
        "nombre": "Resina",
        "cantidad": 10,
        "unidad": "litro",
        "stock_minimo": 2,
        "costo": "50.00",
        "categoria": "Resinas",
    }
    payload.update(overrides)
    return client.post("/api/materials/", json=payload, headers={"X-Usuario": "ana"})


class TestHealth:
    """Health checks."""

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    def test_api_health(self, client):
        response = client.get("/api/health")

        assert response.json()["env"] == "test"


class TestMaterialsApi:
    """Materia prima por HTTP."""

    def test_create_update_and_history(self, client):
        created = _crear_material(client)
        assert created.status_code == 201
        material = created.json()
        assert material["creado_por"] == "ana"
        assert material["cantidad"] == 10

        updated = client.put(
            f"/api/materials/{material['id']}/stock",
            json={"nueva_cantidad": 7},
            headers={"X-Usuario": "luis"},
        )
        assert updated.status_code == 200
        assert updated.json()["cantidad"] == 7

        movimientos = client.get(f"/api/materials/{material['id']}/movimientos").json()
        assert [(m["tipo"], m["cantidad"], m["usuario_id"]) for m in movimientos] == [
            ("salida", 3, "luis"),
            ("entrada", 10, "ana"),
        ]

        balance = client.get(f"/api/materials/{material['id']}/balance").json()
        assert balance["consistente"] is True

    def test_validation_error_shape(self, client):
        response = _crear_material(client, cantidad=-4)

        assert response.status_code == 400
        assert response.json() == {
            "detail": "La cantidad debe ser un número positivo",
            "code": "VALIDATION_ERROR",
        }

    def test_not_found_shape(self, client):
        response = client.get("/api/materials/999")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_consumo_with_stock_decrement(self, client):
        material = _crear_material(client).json()
        reparacion = client.post(
            "/api/reparaciones/",
            json={"nombre_cliente": "Ana", "modelo": "Figura X", "costo_total": "500"},
        ).json()

        response = client.post(
            "/api/materials/consumos",
            json={
                "tipo_documento": "reparacion",
                "documento_id": reparacion["id"],
                "materia_id": material["id"],
                "cantidad": 4,
                "descontar_stock": True,
            },
        )

        assert response.status_code == 201
        assert client.get(f"/api/materials/{material['id']}").json()["cantidad"] == 6
        costos = client.get(f"/api/materials/consumos/reparacion/{reparacion['id']}").json()
        assert float(costos["costo_total"]) == 200.0

    def test_consumo_conflict(self, client):
        material = _crear_material(client, cantidad=1).json()
        reparacion = client.post(
            "/api/reparaciones/",
            json={"nombre_cliente": "Ana", "modelo": "Figura X"},
        ).json()

        response = client.post(
            "/api/materials/consumos",
            json={
                "tipo_documento": "reparacion",
                "documento_id": reparacion["id"],
                "materia_id": material["id"],
                "cantidad": 2,
                "descontar_stock": True,
            },
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"


class TestHerramientasApi:
    """Herramientas por HTTP."""

    def test_assign_until_conflict(self, client):
        tool = client.post(
            "/api/herramientas/", json={"nombre": "Taladro", "cantidad_total": 1}
        ).json()

        first = client.post(
            "/api/herramientas/Taladro/asignar",
            json={"usuario_asignado": "juan"},
            headers={"X-Usuario": "ana"},
        )
        assert first.status_code == 200
        assert first.json()["asignado_por"] == "ana"
        assert first.json()["estatus"] == "En Uso"

        second = client.post(
            f"/api/herramientas/{tool['id']}/asignar", json={"usuario_asignado": "pedro"}
        )
        assert second.status_code == 409
        assert second.json()["detail"] == "no stock available to assign"

        returned = client.post(f"/api/herramientas/{tool['id']}/devolver")
        assert returned.json()["cantidad_disponible"] == 1


class TestReparacionesApi:
    """Reparaciones por HTTP."""

    def test_lifecycle(self, client):
        created = client.post(
            "/api/reparaciones/",
            json={
                "nombre_cliente": "Ana",
                "modelo": "Figura X",
                "costo_total": "500",
                "anticipo": "200",
            },
            headers={"X-Usuario": "ana"},
        )
        assert created.status_code == 201
        reparacion = created.json()
        assert float(reparacion["saldo_pendiente"]) == 300.0
        assert reparacion["estado"] == "Pendiente"

        entregada = client.put(
            f"/api/reparaciones/{reparacion['id']}/estado", json={"estado": "Entregado"}
        )
        assert entregada.json()["estado"] == "Entregado"

        invalida = client.put(
            f"/api/reparaciones/{reparacion['id']}/estado", json={"estado": "Inexistente"}
        )
        assert invalida.status_code == 400
        assert invalida.json()["detail"].startswith("Estado no valido")

        historial = client.get(f"/api/reparaciones/{reparacion['id']}/historial").json()
        assert [h["estado"] for h in historial] == ["Entregado", "Pendiente"]

        recibo = client.get(f"/api/reparaciones/{reparacion['id']}/recibo").json()
        assert recibo["numero_recibo"].startswith("REC-")
        assert float(recibo["saldo_pendiente"]) == 300.0


class TestPedidosApi:
    """Pedidos por HTTP."""

    def test_create_list_and_finalize(self, client):
        created = client.post(
            "/api/pedidos/",
            json={
                "cliente_nombre": "Luis",
                "total": "250",
                "productos": [
                    {"producto_nombre": "Virgen", "cantidad": 2, "precio_unitario": "100"},
                    {"producto_nombre": "Angel", "cantidad": 1, "precio_unitario": "50"},
                ],
            },
        )
        assert created.status_code == 201
        pedido = created.json()
        assert pedido["total_cantidad"] == 3
        assert pedido["resumen_producto"] == "Virgen... (+1 items)"
        assert pedido["creado_por"] == "admin"

        hoy = datetime.utcnow().date().isoformat()
        del_dia = client.get("/api/pedidos/", params={"fecha": hoy}).json()
        assert [p["id"] for p in del_dia] == [pedido["id"]]

        bad = client.get("/api/pedidos/", params={"fecha": "23-11-2025"})
        assert bad.status_code == 400

        final = client.put(f"/api/pedidos/{pedido['id']}/etapa", json={"etapa": "Finalizado"})
        assert final.json()["etapa"] == "Finalizado"
        assert len(client.get(f"/api/pedidos/{pedido['id']}/ventas").json()) == 2

        blocked = client.delete(f"/api/pedidos/{pedido['id']}")
        assert blocked.status_code == 409

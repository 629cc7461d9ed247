# taller/db/immutability.py
"""
Candados a nivel ORM para los libros de solo-inserción.

    Entidad              | UPDATE | DELETE
    ---------------------|--------|--------
    MovimientoMp         |   no   |   no
    HistorialReparacion  |   no   |   no
    MaterialUtilizado    |   no   |   sí (corrección o borrado del documento)
    PedidoEtapa          |   no   |   sí (se borra junto con el pedido)

Los listeners corren antes de que el SQL llegue a la base; si fallan, la
transacción del caller hace rollback y la fila queda intacta. No protegen
contra SQL crudo.
"""

from sqlalchemy import event

from taller.core.errors import LedgerImmutableError
from taller.core.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(operation: str):
    def _listener(mapper, connection, target):
        entity = type(target).__name__
        logger.error(
            "immutability_violation_blocked",
            extra={"entity_type": entity, "entity_id": target.id, "operation": operation},
        )
        raise LedgerImmutableError(entity, target.id, operation)

    return _listener


_block_update = _block("UPDATE")
_block_delete = _block("DELETE")


def _targets():
    from taller.models import HistorialReparacion, MaterialUtilizado, MovimientoMp, PedidoEtapa

    return [
        (MovimientoMp, "before_update", _block_update),
        (MovimientoMp, "before_delete", _block_delete),
        (HistorialReparacion, "before_update", _block_update),
        (HistorialReparacion, "before_delete", _block_delete),
        (MaterialUtilizado, "before_update", _block_update),
        (PedidoEtapa, "before_update", _block_update),
    ]


def register_immutability_listeners() -> None:
    """Idempotente: se puede llamar desde create_app y desde los tests."""
    for model, identifier, fn in _targets():
        if not event.contains(model, identifier, fn):
            event.listen(model, identifier, fn)


def unregister_immutability_listeners() -> None:
    for model, identifier, fn in _targets():
        if event.contains(model, identifier, fn):
            event.remove(model, identifier, fn)

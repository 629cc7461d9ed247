# taller/core/errors.py
"""
Errores tipados del núcleo de inventario y flujos del taller.

Cada error lleva un ``code`` estable para la capa HTTP y los logs, y los
datos estructurados necesarios para reportarlo sin parsear el mensaje:

    TallerError
    +-- ValidationError        entrada mal formada o faltante
    +-- NotFoundError          entidad inexistente o dada de baja
    +-- ConflictError          viola una regla de negocio con el estado actual
    |   +-- LedgerImmutableError
    +-- StorageError           falla de persistencia (ya con rollback)
"""


class TallerError(Exception):
    code: str = "TALLER_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(TallerError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(TallerError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} no encontrado: {key}")


class ConflictError(TallerError):
    code = "CONFLICT"
    status_code = 409


class LedgerImmutableError(ConflictError):
    code = "LEDGER_IMMUTABLE"

    def __init__(self, entity: str, entity_id: object, operation: str):
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(f"{entity} #{entity_id} es inmutable ({operation} no permitido)")


class StorageError(TallerError):
    code = "STORAGE_ERROR"
    status_code = 500

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Error de base de datos en {operation}")

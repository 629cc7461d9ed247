# taller/db/deps.py
from collections.abc import Iterator

from fastapi import Header, Request
from sqlalchemy.orm import Session

from taller.core.logging_config import LogContext


def get_db(request: Request) -> Iterator[Session]:
    storage = request.app.state.storage
    db = storage.session()
    try:
        yield db
    finally:
        db.close()


def get_usuario_actual(
    request: Request,
    x_usuario: str | None = Header(None, alias="X-Usuario"),
) -> str:
    """
    Identidad del actor para auditoría. La autenticación vive fuera de este
    servicio; aquí solo se registra lo que venga en el header.
    """
    usuario = (x_usuario or "").strip() or request.app.state.settings.USUARIO_SISTEMA
    LogContext.set(usuario=usuario)
    return usuario

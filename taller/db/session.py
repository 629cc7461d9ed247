# taller/db/session.py
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taller.core.config import Settings
from taller.core.errors import StorageError
from taller.core.logging_config import get_logger

logger = get_logger("db")


def _engine_kwargs(url: str, settings: Settings | None) -> dict:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # una sola conexión compartida para que la BD en memoria no se pierda
            kwargs["poolclass"] = StaticPool
        return kwargs

    kwargs = {"pool_pre_ping": True}
    if settings is not None:
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return kwargs


class Storage:
    """
    Engine + fábrica de sesiones del proceso.

    Se construye una vez en ``create_app()`` (o en scripts/tests) y se pasa
    explícitamente a quien lo necesite.
    """

    def __init__(self, url: str, *, settings: Settings | None = None, echo: bool = False):
        self.url = url
        self.engine: Engine = create_engine(
            url,
            future=True,
            echo=echo,
            **_engine_kwargs(url, settings),
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            future=True,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Storage":
        return cls(settings.database_url, settings=settings, echo=settings.DB_ECHO)

    def session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Sesión con commit al salir y rollback ante cualquier excepción."""
        db = self.session()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        from taller.db.base import Base

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from taller.db.base import Base

        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


@contextmanager
def unit_of_work(db: Session, operation: str, **context) -> Iterator[Session]:
    """
    Una operación de negocio = una transacción.

    Hace commit al terminar el bloque; ante cualquier falla hace rollback.
    Las fallas de SQLAlchemy se registran con el contexto de la operación y
    se re-lanzan como ``StorageError``; los errores de dominio pasan tal cual.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "storage_failure",
            extra={"operation": operation, **context},
            exc_info=True,
        )
        raise StorageError(operation, str(exc)) from exc
    except Exception:
        db.rollback()
        logger.warning(
            "transaction_rolled_back",
            extra={"operation": operation, **context},
        )
        raise

import inject

from src.setup.db_config import DatabaseSettings, get_database_settings
from src.taskqueue.domain.repositories import MessageTaskRepository
from src.taskqueue.infrastructure.postgres.orm import PostgresOrm
from src.taskqueue.infrastructure.postgres.repositories import PostgresMessageTaskRepository


def build_orm(settings: DatabaseSettings | None = None) -> PostgresOrm:
    """Create the ORM holder from database settings."""
    if settings is None:
        settings = get_database_settings()
    return PostgresOrm(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def configure_di(settings: DatabaseSettings | None = None) -> None:
    """Bind the task store into the DI container once per process."""
    if inject.is_configured():
        return

    orm = build_orm(settings)
    repository = PostgresMessageTaskRepository(orm)

    def _config(binder: inject.Binder) -> None:
        binder.bind(PostgresOrm, orm)
        binder.bind(MessageTaskRepository, repository)

    inject.configure(_config)

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from powerswitch.config import settings


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False, pool_pre_ping=True)


engine = make_engine(settings.database_url) if settings.store_configured else None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def create_tables(bind: Engine):
    import powerswitch.models.power  # noqa: F401
    import powerswitch.models.notification  # noqa: F401
    import powerswitch.models.system_log  # noqa: F401
    Base.metadata.create_all(bind=bind)


def init_db():
    if engine is None:
        return
    create_tables(engine)

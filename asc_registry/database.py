"""Database configuration and session management"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from asc_registry.config import settings

# Base class for models
Base = declarative_base()


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine; SQLite connections may be shared across threads."""
    url = database_url or settings.database_url
    kwargs = {
        'echo': settings.debug if echo is None else echo,
        'pool_pre_ping': True,
    }
    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in url or url in ('sqlite://', 'sqlite:///'):
            kwargs['poolclass'] = StaticPool
    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the base tables if they do not exist."""
    # Registers the models on Base.metadata
    from asc_registry import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# Database engine
engine = build_engine()

# Session factory
SessionLocal = build_session_factory(engine)


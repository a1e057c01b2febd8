"""
Database configuration and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    database_url: str = "sqlite:///./sign_translator.db"
    echo: bool = False

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra environment variables
    )


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, with thread-safe pooling for SQLite."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={
                "check_same_thread": False,
            },
        )
    # PostgreSQL configuration
    return create_engine(database_url, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Global settings
db_settings = DatabaseSettings()

engine = build_engine(db_settings.database_url, db_settings.echo)
SessionLocal = build_session_factory(engine)

# Create declarative base
Base = declarative_base()


def create_tables(bind: Engine = None):
    """Create all database tables."""
    # Import models so they register with Base.metadata
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)

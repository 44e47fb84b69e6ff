"""
Database setup and configuration using SQLAlchemy
Saved designs live in Documents/FloorPlanMarkup unless a custom path is set
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import logging
import os
from contextlib import contextmanager

from utils.general_utils import ensure_user_data_directory, get_default_database_path

logger = logging.getLogger(__name__)

# Create base class for declarative models
Base = declarative_base()

# Global session factory
SessionLocal = None
engine = None

MEMORY_PATH = ":memory:"


def _database_url(db_path):
	if db_path == MEMORY_PATH:
		return "sqlite://"
	return f"sqlite:///{db_path}"


def resolve_database_path(db_path=None):
	"""Explicit path, then the path from settings, then the default location"""
	if db_path is not None:
		return db_path
	from utils.settings_manager import get_settings_manager
	custom_path = get_settings_manager().get_database_path()
	if custom_path:
		logger.info("Using custom database path from settings: %s", custom_path)
		return custom_path
	ensure_user_data_directory()
	return get_default_database_path()


def initialize_database(db_path=None):
	"""Initialize the database connection and create tables

	Pass ":memory:" for a throwaway in-memory database.
	Returns the path that was opened.
	"""
	global engine, SessionLocal

	db_path = resolve_database_path(db_path)
	new_url = _database_url(db_path)

	# If engine already exists and is using the same file, don't reinitialize
	if engine is not None:
		if str(engine.url) == new_url and db_path != MEMORY_PATH:
			logger.debug("Database already initialized: %s", db_path)
			return db_path
		logger.info("Database path changed from %s to %s", engine.url, new_url)
		engine.dispose()

	logger.info("Initializing database: %s", db_path)
	engine = create_engine(new_url, echo=False)

	# expire_on_commit=False keeps loaded attributes readable after the
	# session is closed
	SessionLocal = sessionmaker(
		autocommit=False,
		autoflush=False,
		expire_on_commit=False,
		bind=engine,
	)

	# Import all models to ensure they're registered
	from . import design  # noqa: F401

	Base.metadata.create_all(bind=engine)
	return db_path


def get_session():
	"""Get a new database session"""
	if SessionLocal is None:
		raise RuntimeError("Database not initialized. Call initialize_database() first.")
	return SessionLocal()


@contextmanager
def session_scope():
	"""Context manager committing on success and rolling back on error

	Usage:
		with session_scope() as session:
			session.add(obj)
	"""
	session = get_session()
	try:
		yield session
		session.commit()
	except Exception:
		session.rollback()
		logger.exception("Session rolled back")
		raise
	finally:
		session.close()


def close_database():
	"""Close the database connection"""
	global engine, SessionLocal
	if engine:
		engine.dispose()
		engine = None
	SessionLocal = None

"""
ArangoDB database connection and utilities.

Provides the client/database singletons used by the ArangoDB settings
store. All database operations are logged for observability.
"""

from arango import ArangoClient
from arango.database import StandardDatabase
from arango.exceptions import CollectionCreateError, DatabaseCreateError

from hms_engine.config.config import get_settings
from hms_engine.config.logging_config import get_logger

logger = get_logger(__name__)

# Singleton client instance
_client: ArangoClient | None = None
_db: StandardDatabase | None = None


def get_client() -> ArangoClient:
    """
    Get or create the ArangoDB client singleton.

    Returns:
        ArangoClient instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = ArangoClient(hosts=settings.arango_host)
        logger.info("ArangoDB client initialized", host=settings.arango_host)
    return _client


def get_database() -> StandardDatabase:
    """
    Get or create the database connection.

    Creates the database and the settings collection if they don't exist.

    Returns:
        StandardDatabase instance.
    """
    global _db
    if _db is None:
        settings = get_settings()
        client = get_client()

        # Connect to system database to create our database if needed
        sys_db = client.db(
            "_system",
            username=settings.arango_username,
            password=settings.arango_password,
        )

        if not sys_db.has_database(settings.arango_database):
            try:
                sys_db.create_database(settings.arango_database)
                logger.info("Created database", database=settings.arango_database)
            except DatabaseCreateError as e:
                logger.error("Failed to create database", error=str(e))
                raise

        _db = client.db(
            settings.arango_database,
            username=settings.arango_username,
            password=settings.arango_password,
        )
        logger.info("Connected to database", database=settings.arango_database)

        _init_collections(_db, [settings.arango_settings_collection])

    return _db


def _init_collections(db: StandardDatabase, names: list[str]) -> None:
    """
    Initialize required collections if they don't exist.

    Args:
        db: The database instance.
        names: Collection names.
    """
    for name in names:
        if not db.has_collection(name):
            try:
                db.create_collection(name)
                logger.info("Created collection", collection=name)
            except CollectionCreateError as e:
                logger.warning("Collection creation failed", collection=name, error=str(e))


def close_connection() -> None:
    """Close the database connection."""
    global _client, _db
    if _client is not None:
        _client.close()
        _client = None
        _db = None
        logger.info("Database connection closed")

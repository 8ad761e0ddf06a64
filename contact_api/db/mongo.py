import motor.motor_asyncio
import logging
from typing import Tuple

# Set up logger
logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "contact-us-db"


def mask_uri(uri: str) -> str:
    """Hide the password part of a MongoDB connection string for logging"""
    if '@' not in uri or '://' not in uri:
        return uri
    scheme, rest = uri.split('://', 1)
    credentials, host_part = rest.rsplit('@', 1)
    if ':' not in credentials:
        return uri
    user, password = credentials.split(':', 1)
    return f"{scheme}://{user}:{'*' * len(password)}@{host_part}"


def parse_db_name(uri: str) -> str:
    """
    Extract the database name from the path of a MongoDB URI.

    Falls back to DEFAULT_DB_NAME when the URI has no path component.
    """
    rest = uri.split('://', 1)[-1]
    if '/' not in rest:
        return DEFAULT_DB_NAME
    path = rest.split('/', 1)[1]
    # Remove any query parameters if present
    db_name = path.split('?', 1)[0].strip()
    return db_name or DEFAULT_DB_NAME


def connect(uri: str) -> Tuple[motor.motor_asyncio.AsyncIOMotorClient, motor.motor_asyncio.AsyncIOMotorDatabase]:
    """
    Create the process-wide MongoDB client and select the database.

    The driver connects lazily, so an unreachable server shows up on the
    first operation rather than here.

    Returns:
        tuple: (client, database)
    """
    logger.info(f"MongoDB URI configured: {mask_uri(uri)}")

    client = motor.motor_asyncio.AsyncIOMotorClient(
        uri,
        maxPoolSize=10,
        minPoolSize=0,
        maxIdleTimeMS=30000,         # Close idle connections after 30 seconds
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        tz_aware=True,
    )

    db_name = parse_db_name(uri)
    db = client[db_name]
    logger.info(f"MongoDB client created for database: {db_name}")
    return client, db

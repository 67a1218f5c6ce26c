"""
Connection to the document store.

The client is created once, at startup, and handed over to the application:
a server that can't be reached stops the process right away, not at the first request.
"""

from logging import getLogger

from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .exc import ExecutionError

logger = getLogger(__name__)

#: Databases that are never listed
SYSTEM_DATABASES = frozenset(('admin', 'local'))

#: Everything the driver raises when a command fails
#: BSON raises OverflowError for integers that do not fit into 8 bytes.
STORE_ERRORS = (PyMongoError, BSONError, OverflowError)


def connect(uri: str, server_selection_timeout_ms: int = 5000) -> MongoClient:
    """ Connect to MongoDB and make sure the server responds

        MongoClient is thread-safe and keeps a connection pool: one per process is enough.

        :raises pymongo.errors.PyMongoError: the server can't be reached
    """
    client = MongoClient(uri, serverSelectionTimeoutMS=server_selection_timeout_ms)

    # MongoClient connects lazily. Make it connect now.
    client.admin.command('ping')
    logger.info('Connected to MongoDB')
    return client


def list_databases(client: MongoClient) -> list:
    """ List databases with their collections

        :return: [ { databaseName, collections: [...] } ]
        :raises ExecutionError: the database failed
    """
    try:
        return [
            dict(databaseName=name,
                 collections=client[name].list_collection_names())
            for name in client.list_database_names()
            if name not in SYSTEM_DATABASES
        ]
    except STORE_ERRORS as e:
        raise ExecutionError.from_pymongo(e) from e

"""
MongoGrid is designed to help with data selection for the APIs.
To ease the pain of implementing CRUD for all of your collections,
MongoGrid comes with a CRUD helper that exposes MongoGrid capabilities for querying to the API user,
and takes care of the little things when writing: namely, dates.

JSON has no date type, so dates arrive as strings.
If the collection has a `$jsonSchema` validator that declares a field with `bsonType: "date"`,
its value is converted into a `datetime` before it's written.
Collections without a validator are written as is.
"""

from copy import copy
from datetime import datetime, timezone
from logging import getLogger

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.database import Database

from mongogrid import exc
from mongogrid.query import MongoPipeline
from mongogrid.store import STORE_ERRORS
from mongogrid.util import PageResult

from typing import Union, Mapping, MutableMapping

logger = getLogger(__name__)


class CrudHelper:
    """ Crud helper: an object that helps implement CRUD operations for an API endpoint:

        * Create: insert a document from the submitted entity dict
        * Read: use MongoPipeline for querying
        * Update: update a document from the submitted entity dict
        * Delete: delete a document by id

        This object is supposed to be initialized only once;
        don't do it for every query, keep it at the class level!

        ```python
        from mongogrid import CrudHelper

        class CollectionView:
            crudhelper = CrudHelper(
                # Settings for MongoPipeline
                max_items=100,
            )
            # ...
        ```

        It does not hold a connection: every method receives the collection or the database to work with.
    """

    # The class to use for MongoPipeline
    _MONGOPIPELINE_CLS = MongoPipeline

    def __init__(self, **handler_settings):
        """ Init CRUD helper

        :param handler_settings: Settings for the MongoPipeline used to make queries
        """
        self.handler_settings = handler_settings
        #: A MongoPipeline that never receives input: every query gets a copy of it
        self.mongopipeline = self._MONGOPIPELINE_CLS(handler_settings)

    # region Read

    def query_collection(self, query_obj: Union[Mapping, None] = None) -> MongoPipeline:
        """ Make a MongoPipeline using the provided Query Object

            :param query_obj: The Query Object to use
            :raises exc.InvalidQueryError: There is an error in the Query Object that the user has made
            :raises exc.InvalidOperatorError: Unknown filter operator
            :raises exc.InvalidValueError: A filter value can't be coerced
            :raises exc.DisabledError: A feature is disabled; likely, due to a configuration issue. See handler_settings.
        """
        # Validate
        if not isinstance(query_obj, (Mapping, NoneType)):
            raise exc.InvalidQueryError('Query Object must be either an object, or null')

        # Query
        return copy(self.mongopipeline).query(**(query_obj or {}))  # ensure dict

    def list(self, collection: Collection, query_obj: Union[Mapping, None] = None) -> PageResult:
        """ Get a page of documents and their total count

            The Query Object is compiled first: nothing reaches the database unless it's valid.

            :raises exc.InvalidQueryError: Query Object errors made by the user
            :raises exc.ExecutionError: The database failed to run the pipeline
        """
        mongopipeline = self.query_collection(query_obj)
        return mongopipeline.end_count(collection).page()

    # endregion

    # region Schema

    def get_validator(self, db: Database, collection_name: str) -> Union[dict, None]:
        """ Get the validator of a collection, if any

            :raises exc.ExecutionError: The database failed
        """
        try:
            info = next(db.list_collections(filter={'name': collection_name}), None)
        except STORE_ERRORS as e:
            raise exc.ExecutionError.from_pymongo(e) from e

        if not info:
            return None
        return (info.get('options') or {}).get('validator')

    def get_validator_schema(self, db: Database, collection_name: str) -> dict:
        """ Get the properties declared by the collection's $jsonSchema validator

            :return: { field name: { bsonType: ... } }. Empty, when there's no schema.
        """
        validator = self.get_validator(db, collection_name) or {}
        json_schema = validator.get('$jsonSchema') or {}
        return json_schema.get('properties') or {}

    @staticmethod
    def date_fields(properties: Mapping) -> set:
        """ Get the names of date fields from the $jsonSchema properties """
        return {
            name
            for name, prop in properties.items()
            if _is_date_bson_type((prop or {}).get('bsonType'))
        }

    def coerce_entity_dict(self, entity_dict: MutableMapping, properties: Mapping) -> MutableMapping:
        """ Convert the values of date fields into datetime objects

            Only the fields that are declared as dates are touched.

            :raises exc.InvalidValueError: a date can't be parsed
        """
        for name in self.date_fields(properties) & set(entity_dict.keys()):
            entity_dict[name] = _parse_date(name, entity_dict[name])
            logger.debug('Coerced date field %r: %r', name, entity_dict[name])
        return entity_dict

    def validate_incoming_entity_dict(self, entity_dict: Mapping, action: str) -> dict:
        """ Validate the incoming JSON data """
        if not isinstance(entity_dict, Mapping):
            raise exc.InvalidQueryError(f'Document "{action}": the value has to be an object, '
                                        f'not {type(entity_dict).__name__}')
        return dict(entity_dict)

    # endregion

    # region Write

    def create(self, db: Database, collection_name: str, entity_dict: Mapping) -> dict:
        """ Insert a document

            :return: { acknowledged, insertedId }
            :raises exc.InvalidQueryError: validation errors
            :raises exc.ValidationError: the collection's validator rejected the document
            :raises exc.ExecutionError: the database failed
        """
        entity_dict = self.validate_incoming_entity_dict(entity_dict, 'create')
        entity_dict = self.coerce_entity_dict(entity_dict, self.get_validator_schema(db, collection_name))

        try:
            res = db[collection_name].insert_one(entity_dict)
        except STORE_ERRORS as e:
            raise exc.ExecutionError.from_pymongo(e) from e

        return dict(acknowledged=res.acknowledged,
                    insertedId=res.inserted_id)

    def update(self, db: Database, collection_name: str, id, entity_dict: Mapping) -> dict:
        """ Update some fields of a document: a partial update with $set

            :param id: The _id of the document, as given in the URL
            :return: { acknowledged, matchedCount, modifiedCount, upsertedId, upsertedCount }
            :raises exc.InvalidQueryError: validation errors
            :raises exc.ValidationError: the collection's validator rejected the document
            :raises exc.ExecutionError: the database failed
        """
        entity_dict = self.validate_incoming_entity_dict(entity_dict, 'update')
        entity_dict = self.coerce_entity_dict(entity_dict, self.get_validator_schema(db, collection_name))

        try:
            res = db[collection_name].update_one({'_id': parse_id(id)}, {'$set': entity_dict})
        except STORE_ERRORS as e:
            raise exc.ExecutionError.from_pymongo(e) from e

        return dict(acknowledged=res.acknowledged,
                    matchedCount=res.matched_count,
                    modifiedCount=res.modified_count,
                    upsertedId=res.upserted_id,
                    upsertedCount=1 if res.upserted_id is not None else 0)

    def delete(self, db: Database, collection_name: str, id) -> dict:
        """ Delete a document

            :param id: The _id of the document, as given in the URL
            :return: { acknowledged, deletedCount }
            :raises exc.ExecutionError: the database failed
        """
        try:
            res = db[collection_name].delete_one({'_id': parse_id(id)})
        except STORE_ERRORS as e:
            raise exc.ExecutionError.from_pymongo(e) from e

        return dict(acknowledged=res.acknowledged,
                    deletedCount=res.deleted_count)

    # endregion


def parse_id(id):
    """ Convert an id from the URL into an `_id` value

        * '12' -> 12
        * '5f43a1e2b3c4d5e6f7a8b9c0' -> ObjectId('5f43a1e2b3c4d5e6f7a8b9c0')
        * anything else is kept as a string
    """
    if not isinstance(id, str):
        return id
    try:
        return int(id)
    except ValueError:
        pass
    if ObjectId.is_valid(id):
        return ObjectId(id)
    return id


def _is_date_bson_type(bson_type) -> bool:
    """ Test a $jsonSchema `bsonType`: can be a string, or a list of strings """
    if isinstance(bson_type, str):
        return bson_type == 'date'
    if isinstance(bson_type, (list, tuple)):
        return 'date' in bson_type
    return False


def _parse_date(field: str, value):
    """ Parse a date: ISO 8601 string, or milliseconds since the epoch

        Naive datetimes are taken to be UTC.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            # Out of the range datetime supports
            raise exc.InvalidValueError(field, 'date', value, 'date')
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            raise exc.InvalidValueError(field, 'date', value, 'date')
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise exc.InvalidValueError(field, 'date', value, 'date')


NoneType = type(None)

from enum import Enum

from pymongo.database import Database

from ..util import PageResult
from .crudhelper import CrudHelper

from typing import List, Mapping, Union


class CRUD_METHOD(Enum):
    """ CRUD method """
    LIST = 'LIST'
    SCHEMA = 'SCHEMA'
    CREATE = 'CREATE'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'


class CrudViewMixin:
    """ A mixin class for implementations of CRUD views over any collection.

        This class is supposed to be re-initialized for every request.

        To implement a CRUD view:
        1. Set `crudhelper` at the class level, initialize it with the proper settings
        2. Implement `_get_db()`, `_get_collection_name()`, `_get_query_object()` and `_get_filter_descriptors()`
        3. Override `_method_*()` to customize their output

        For an example on how to use CrudViewMixin, see [mongogrid/app.py](mongogrid/app.py)
    """

    #: Set the CRUD helper object at the class level
    crudhelper = None  # type: CrudHelper

    def __init__(self):
        #: The current CRUD method
        self._current_crud_method = None

    # region Abstract Methods

    def _get_db(self) -> Database:
        """ (Abstract method) Get the database this request works with """
        raise NotImplementedError('_get_db() not implemented on {}'
                                  .format(type(self)))

    def _get_collection_name(self) -> str:
        """ (Abstract method) Get the name of the collection this request works with """
        raise NotImplementedError

    def _get_query_object(self) -> Mapping:
        """ (Abstract method) Get the Query Object for the current request: search, sort, page, pageSize """
        raise NotImplementedError

    def _get_filter_descriptors(self) -> Union[List[dict], None]:
        """ (Abstract method) Get the list of filter descriptors for the current request """
        raise NotImplementedError

    # endregion

    # ###
    # CRUD methods' implementations

    def _method_list(self) -> PageResult:
        """ (CRUD method) Fetch a page of documents, and their total count

                POST /db/collection?search=...&sort=...&page=...&pageSize=...

            :raises exc.InvalidQueryError: Query Object errors made by the user
            :raises exc.ExecutionError: The database failed
        """
        self._current_crud_method = CRUD_METHOD.LIST
        query_object = dict(self._get_query_object() or {})
        query_object['filter'] = self._get_filter_descriptors()
        return self.crudhelper.list(self._get_collection(), query_object)

    def _method_schema(self) -> Union[dict, None]:
        """ (CRUD method) Get the validator of the collection """
        self._current_crud_method = CRUD_METHOD.SCHEMA
        return self.crudhelper.get_validator(self._get_db(), self._get_collection_name())

    def _method_create(self, entity_dict: dict) -> dict:
        """ (CRUD method) Insert a document """
        self._current_crud_method = CRUD_METHOD.CREATE
        return self.crudhelper.create(self._get_db(), self._get_collection_name(), entity_dict)

    def _method_update(self, id, entity_dict: dict) -> dict:
        """ (CRUD method) Update some fields of a document """
        self._current_crud_method = CRUD_METHOD.UPDATE
        return self.crudhelper.update(self._get_db(), self._get_collection_name(), id, entity_dict)

    def _method_delete(self, id) -> dict:
        """ (CRUD method) Delete a document """
        self._current_crud_method = CRUD_METHOD.DELETE
        return self.crudhelper.delete(self._get_db(), self._get_collection_name(), id)

    # region Helpers

    def _get_collection(self):
        return self._get_db()[self._get_collection_name()]

    # endregion

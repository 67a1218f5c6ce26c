from copy import copy
from logging import getLogger

from . import handlers
from .exc import InvalidQueryError
from .util import MongoPipelineSettingsHandler, CountingPipeline

logger = getLogger(__name__)


class MongoPipeline(object):
    """ Compile a Query Object into a MongoDB aggregation pipeline """

    #: Names of the $facet branches
    FACET_DATA = 'data'
    FACET_COUNT = 'count'

    def __init__(self, handler_settings=None):
        """ Init a MongoDB aggregation pipeline builder

        :param handler_settings: Settings for Query Object handlers.
            These are just plain kwargs names for every handler object's __init__ method.
            Note that you don't have to specify which object receives which kwarg:
            the `MongoPipelineSettingsHandler` object does that automatically.

            To disable a handler, give its name mapped to a `False`.
            Example:

                search_enabled=False

            The list of all settings:
                # search
                    search_index=None
                # filter
                    force_filter=None
                # limit
                    default_page_size=10
                    max_items=None
                # count
                    count_field='total'
                # enabled handlers?
                    search_enabled=True
                    filter_enabled=True
                    sort_enabled=True
                    limit_enabled=True

        :type handler_settings: dict | None
        """
        # Initialize the settings
        self._handler_settings = MongoPipelineSettingsHandler(handler_settings or {})

        # Get ready: Query Object handlers
        self._init_query_object_handlers()

        # NOTE: keep in mind that this object is copy()ed for every query: see CrudHelper.
        # Whenever you add a property to this object, make sure you understand its copy() behavior.

    def __copy__(self):
        """ A copy of a MongoPipeline that has not received any input is ready for another query

            Settings are parsed once; every copy gets its own handlers:

                pristine = MongoPipeline(dict(max_items=100))
                copy(pristine).query(sort='Price asc').end()
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)

        # Copy Query Object handlers
        for name in self.HANDLER_ATTR_NAMES:
            setattr(result, name, copy(getattr(result, name)))

        return result

    def query(self, **query_object):
        """ Build a MongoDB pipeline from an object

        :param search: Full-text search
        :param filter: List of filter descriptors
        :param sort: Sorting spec
        :param page: Page number, zero-based
        :param pageSize: Number of documents per page
        :raises InvalidQueryError: unknown Query Object operations provided (extra keys)
        :raises InvalidQueryError: syntax error for any of the Query Object sections
        :raises InvalidOperatorError: unknown filter operator
        :raises InvalidValueError: a filter value can't be coerced
        :raises DisabledError: input was given to a disabled handler
        :rtype: MongoPipeline
        """
        # Check if Query Object keys are all right
        invalid_keys = set(query_object.keys()) - self.QUERY_OBJECT_KEYS
        if invalid_keys:
            raise InvalidQueryError(u'Unknown Query Object operations: {}'.format(', '.join(sorted(invalid_keys))))

        # Prepare Query Object
        for handler_name, handler in self._handlers():
            query_object = handler.input_prepare_query_object(query_object)

        # Bind every handler with ourselves
        for handler_name, handler in self._handlers():
            handler.with_mongopipeline(self)

        # Process every field with its method
        # Every handler should be invoked because they may have defaults even when no input was provided
        for handler_name, handler in self._handlers():
            input_value = query_object.get(handler_name, None)

            # Disabled handlers exception
            # But only test that if there actually was any input
            if input_value is not None:
                self._raise_if_handler_is_not_enabled(handler_name)

            handler.input(input_value)

        # Done
        return self

    def end(self):
        """ Get the resulting aggregation pipeline

        :rtype: list[dict]
        """
        pipeline = []
        for handler_name, handler in self._handlers_ordered_for_end_method():
            pipeline.extend(handler.compile_stages())

        # Pagination and count: always there, always last
        pipeline.append(self._compile_facet_stage())

        logger.debug('Compiled pipeline: %r', pipeline)
        return pipeline

    def end_count(self, collection=None) -> CountingPipeline:
        """ Get the resulting pipeline, wrapped into a CountingPipeline

            It will give you the page of documents and their total count in one aggregate() call.

            :param collection: The collection to run against
            :type collection: pymongo.collection.Collection
        """
        return CountingPipeline(self.end(), collection,
                                data_branch=self.FACET_DATA,
                                count_branch=self.FACET_COUNT,
                                count_field=self.handler_count.count_field)

    def _compile_facet_stage(self):
        """ The $facet that paginates and counts the same set of documents """
        return {'$facet': {
            self.FACET_DATA: self.handler_limit.compile_statements(),
            self.FACET_COUNT: self.handler_count.compile_statements(),
        }}

    def get_final_query_object(self):
        """ Get the final Query Object dict, with defaults applied: mainly for debugging """
        return dict(
            search=self.handler_search.get_final_input_value(),
            filter=self.handler_filter.get_final_input_value(),
            sort=self.handler_sort.get_final_input_value(),
            **self.handler_limit.get_final_input_value(),
        )

    def __repr__(self):
        return 'MongoPipeline()'

    # region Query Object handlers

    # This section initializes every Query Object handler, one per method.
    # Doing it this way enables you to override the way they are initialized, and use a custom pipeline class with
    # custom settings.

    _QO_HANDLER_SEARCH = handlers.MongoSearch
    _QO_HANDLER_FILTER = handlers.MongoFilter
    _QO_HANDLER_SORT = handlers.MongoSort
    _QO_HANDLER_LIMIT = handlers.MongoLimit
    _QO_HANDLER_COUNT = handlers.MongoCount

    HANDLER_NAMES = frozenset(('search',
                               'filter',
                               'sort',
                               'limit',
                               'count'))
    HANDLER_ATTR_NAMES = frozenset('handler_'+name
                                   for name in HANDLER_NAMES)

    #: Query Object keys the user may provide. The total is always counted
    QUERY_OBJECT_KEYS = frozenset(('search',
                                   'filter',
                                   'sort',
                                   'page',
                                   'pageSize'))

    def _handlers(self):
        """ Get the list of all (handler_name, handler) """
        return (
            # The ordering of these handlers is the ordering of the stages in the pipeline:
            # 1. 'search' first
            #    Because $search only works as the first stage: the search index covers the whole collection
            # 2. 'filter' after 'search'
            #    Because it narrows down the documents that were found
            # 3. 'sort' after 'filter'
            #    Because sorting the unfiltered collection is a waste
            # 4. 'limit' and 'count' after everything
            #    They make the $facet: pagination windows over sorted results, and the count sees all of them.
            ('search', self.handler_search),
            ('filter', self.handler_filter),
            ('sort', self.handler_sort),
            ('limit', self.handler_limit),
            ('count', self.handler_count),
        )

    def _handlers_ordered_for_end_method(self):
        """ Handlers that contribute stages of their own: 'limit' and 'count' make the $facet """
        return [(name, handler)
                for name, handler in self._handlers()
                if name not in ('limit', 'count')]

    # for IDE completion
    handler_search = None  # type: mongogrid.handlers.MongoSearch
    handler_filter = None  # type: mongogrid.handlers.MongoFilter
    handler_sort = None  # type: mongogrid.handlers.MongoSort
    handler_limit = None  # type: mongogrid.handlers.MongoLimit
    handler_count = None  # type: mongogrid.handlers.MongoCount

    def _init_query_object_handlers(self):
        """ Initialize every Query Object handler """
        for name in self.HANDLER_NAMES:
            # Every handler: name, attr, clas
            handler_attr_name = 'handler_' + name
            handler_cls_attr_name = '_QO_HANDLER_' + name.upper()
            handler_cls = getattr(self, handler_cls_attr_name)

            # Use _init_handler()
            setattr(self, handler_attr_name,
                    self._init_handler(name, handler_cls)
                    )

        # Check settings
        self._handler_settings.raise_if_invalid_handler_settings(self)

    def _init_handler(self, handler_name, handler_cls):
        """ Init a handler, and load its settings """
        handler_settings = self._handler_settings.get_settings(handler_name, handler_cls)
        return handler_cls(**handler_settings)

    # endregion

    # region Internals

    def _raise_if_handler_is_not_enabled(self, handler_name):
        """ Raise an error if a handler is not enabled. """
        self._handler_settings.raise_if_not_handler_enabled(handler_name)

    # endregion

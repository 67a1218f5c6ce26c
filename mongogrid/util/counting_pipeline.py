from logging import getLogger
from typing import List, NamedTuple

from pymongo.collection import Collection
from ..store import STORE_ERRORS

from ..exc import ExecutionError

logger = getLogger(__name__)


class PageResult(NamedTuple):
    """ One page of documents, and the total number of documents that matched """
    data: List[dict]
    total: int


class CountingPipeline:
    """ Aggregation pipeline wrapper that can count the documents while returning a page of them

        This is achieved by ending the pipeline with a $facet:

            { $facet: {
                data: [ { $skip: 20 }, { $limit: 10 } ],
                count: [ { $count: "total" } ],
            } }

        which produces exactly one document:

            { data: [ ...documents... ], count: [ { total: 127 } ] }

        In order to be transparent, this class unwraps that document: iterating yields the page,
        and the total count is available through a property.

        Example:

            ```python
            qc = CountingPipeline(pipeline, db['products'])

            # Get the count
            qc.count  # -> 127

            # Get the results
            list(qc)

            # (!) only one aggregate() call was made
            ```

        The pipeline is never split into two calls: the count and the page come from the same snapshot.
    """
    __slots__ = ('_pipeline', '_collection',
                 '_data_branch', '_count_branch', '_count_field',
                 '_data', '_count')

    def __init__(self, pipeline: list, collection: Collection = None,
                 data_branch: str = 'data', count_branch: str = 'count', count_field: str = 'total'):
        """ Wrap a pipeline

        :param pipeline: The aggregation pipeline, ending with a $facet
        :param collection: The collection to run it against
        :param data_branch: Name of the $facet branch with the documents
        :param count_branch: Name of the $facet branch with the count
        :param count_field: Name of the field the count branch writes the total into
        """
        self._pipeline = pipeline
        self._collection = collection

        self._data_branch = data_branch
        self._count_branch = count_branch
        self._count_field = count_field

        # The results ; `None` if the pipeline has not yet been executed
        self._data = None
        self._count = None

    def with_collection(self, collection: Collection):
        """ Run against the given collection """
        self._collection = collection
        return self

    @property
    def pipeline(self) -> list:
        return self._pipeline

    @property
    def count(self) -> int:
        """ Get the total count

            If the pipeline has not been executed yet, it will be at this point.
        """
        if self._count is None:
            self._execute()
        return self._count

    def __iter__(self):
        """ Get the documents of the page """
        if self._data is None:
            self._execute()
        return iter(self._data)

    def page(self) -> PageResult:
        """ Get the page and the total count """
        if self._data is None:
            self._execute()
        return PageResult(data=self._data, total=self._count)

    def _execute(self):
        """ Run the pipeline, and unwrap its one and only result document

            :raises ExecutionError: the database could not run the pipeline
        """
        assert self._collection is not None, 'CountingPipeline has no collection to run against'
        logger.debug('aggregate() on %s: %r', self._collection.full_name, self._pipeline)

        try:
            response = next(self._collection.aggregate(self._pipeline), None)
        except STORE_ERRORS as e:
            raise ExecutionError.from_pymongo(e) from e

        # $facet always produces a document ; but let's not rely on this
        response = response or {}

        self._data = list(response.get(self._data_branch) or [])
        self._count = self._get_count_from_branch(response.get(self._count_branch))

    def _get_count_from_branch(self, rows) -> int:
        """ Get the total from the output of the count branch

            $count produces no document at all when there's nothing to count
        """
        if not rows:
            return 0
        return rows[0].get(self._count_field, 0)

"""
### Pagination Operation
Pagination corresponds to the `$skip` and `$limit` stages of an aggregation pipeline.

The Pagination operation consists of two optional parts:

* `pageSize` would limit the number of items returned by the API
* `page` would shift the "window" by a number of pages; the first page is `0`

Example:

```
POST /myDatabase/myCollection?page=2&pageSize=100
```

This skips 200 items and returns the next 100: we're on the third page.

Values: integers, or strings of decimal digits.
Anything else (including a missing value, or a negative number) falls back to the default:
page `0`, and a page size of `10`.
Strings are parsed whole: `"1.5"` and `"12abc"` are not integers, and fall back to the default as well.
A `pageSize` of `0` also means the default page size.
A `page` that would skip more documents than a 64-bit integer can hold means the first page.

Pagination never affects the total count: see the Count Operation.
"""

from .base import MongoPipelineHandlerBase
from ..operators import INT64_MAX


class MongoLimit(MongoPipelineHandlerBase):
    """ MongoDB pagination

        Handles two keys:
        * 'page': None, or int: the zero-based page number
        * 'pageSize': None, or int: the number of items per page
    """

    query_object_section_name = 'limit'

    def __init__(self, default_page_size=10, max_items=None):
        """ Init a limit

        :param default_page_size: The page size to use when the user provides none
        :param max_items: The maximum number of items that can be loaded with this query.
            The user can never go any higher than that, and this value is forced onto every query.
        """
        super(MongoLimit, self).__init__()

        # Config
        self.default_page_size = default_page_size
        self.max_items = max_items
        assert self.default_page_size > 0
        assert self.max_items is None or self.max_items > 0

        # On input
        self.page = None
        self.page_size = None

    def input_prepare_query_object(self, query_object):
        """ Alter Query Object

        Unlike other handlers, this one receives 2 values: 'page' and 'pageSize'.
        MongoPipeline only supports one key per handler.
        Solution: pack them as a tuple
        """
        # (page, pageSize) hack
        if 'page' in query_object or 'pageSize' in query_object:
            query_object['limit'] = (query_object.pop('page', None),
                                     query_object.pop('pageSize', None))
            if query_object['limit'] == (None, None):
                query_object.pop('limit')  # remove it if it's actually empty

        return query_object

    def input(self, page=None, page_size=None):
        # MongoPipeline actually gives us a tuple (page, pageSize)
        # Adapt.
        if isinstance(page, tuple):
            page, page_size = page

        # Super
        super(MongoLimit, self).input((page, page_size))

        # Parse, fall back to defaults
        page = _parse_int(page)
        page_size = _parse_int(page_size)
        page = page if page is not None else 0
        page_size = page_size or self.default_page_size

        # Max limit
        if self.max_items:
            page_size = min(self.max_items, page_size)

        # $skip is a 64-bit integer
        if page * page_size > INT64_MAX:
            page = 0

        # Done
        self.page = page
        self.page_size = page_size
        return self

    @property
    def skip(self):
        """ The number of documents to skip """
        return self.page * self.page_size

    @property
    def limit(self):
        """ The number of documents to return """
        return self.page_size

    # Not Implemented for this Query Object handler
    compile_statement = NotImplemented
    compile_stages = NotImplemented

    def compile_statements(self):
        """ Compile the data branch of the $facet: skip, then limit """
        return [
            {'$skip': self.skip},
            {'$limit': self.limit},
        ]

    def get_final_input_value(self):
        return dict(page=self.page, pageSize=self.page_size)


def _parse_int(value):
    """ Parse a non-negative integer; `None` if it's not one """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    elif isinstance(value, str):
        try:
            n = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return n if 0 <= n <= INT64_MAX else None

"""
### Sort Operation

Sorting corresponds to the `$sort` stage of an aggregation pipeline.

An example of a sort operation would look like this:

```
POST /myDatabase/myCollection?sort=Price asc
```

#### Syntax

A field name followed by a direction, separated by whitespace.
The direction is `asc` for ascending; anything else sorts in descending order.

    Price asc   -> { Price: 1 }
    Price desc  -> { Price: -1 }
    Price       -> { Price: -1 }

Multiple fields can be given, separated by commas. Their order is preserved:

    Price asc, Name desc  -> { Price: 1, Name: -1 }

Sorting happens after filtering, and before pagination.
"""

from collections import OrderedDict

from .base import MongoPipelineHandlerBase
from ..exc import InvalidQueryError


class MongoSort(MongoPipelineHandlerBase):
    """ MongoDB sorting

        * None: no sorting
        * 'field asc': sort ascending
        * 'field desc', 'field': sort descending
        * 'a asc, b desc': sort by several fields
    """

    query_object_section_name = 'sort'

    #: The only token that sorts in ascending order
    ASCENDING = 'asc'

    def __init__(self):
        # Parent
        super(MongoSort, self).__init__()

        # On input
        #: OrderedDict() of a sort spec: {key: +1|-1}
        self.sort_spec = None

    def _input(self, spec):
        # Empty
        if not spec:
            return OrderedDict()

        if not isinstance(spec, str):
            self._raise_invalid_type(spec, 'a string: "<field> <asc|desc>"')

        sort_spec = OrderedDict()
        for clause in spec.split(','):
            words = clause.split()
            # Trailing commas and extra spaces are harmless
            if not words:
                continue
            if len(words) > 2:
                raise InvalidQueryError('{} clause must be "<field> <asc|desc>", got {!r}'
                                        .format(self.query_object_section_name, clause.strip()))

            field = words[0]
            direction = words[1] if len(words) > 1 else None
            sort_spec[field] = +1 if direction == self.ASCENDING else -1
        return sort_spec

    def input(self, sort_spec=None):
        super(MongoSort, self).input(sort_spec)
        self.sort_spec = self._input(sort_spec)
        return self

    def merge(self, sort_spec):
        self.sort_spec.update(self._input(sort_spec))
        return self

    def is_input_empty(self):
        return not self.sort_spec

    def compile_statement(self):
        return dict(self.sort_spec)

    # Not Implemented for this Query Object handler
    compile_statements = NotImplemented

    def compile_stages(self):
        if not self.sort_spec:
            return []  # short-circuit
        return [{'$sort': self.compile_statement()}]

    def get_final_input_value(self):
        return ', '.join('{} {}'.format(name, 'asc' if d == +1 else 'desc')
                         for name, d in self.sort_spec.items())

"""
### Count Operation
Counting corresponds to the `$count` stage of an aggregation pipeline.

Every query returns the total number of matching documents along with the page:

```javascript
{
    data: [ ... ],  // at most `pageSize` documents
    total: 127,     // all documents that matched `search` and `filter`
}
```

Both are computed by a single `$facet` stage, from the same input: one branch paginates,
the other one counts. This way the count and the page always agree, even under concurrent writes,
and it only takes one round trip to the database.
"""

from .base import MongoPipelineHandlerBase


class MongoCount(MongoPipelineHandlerBase):
    """ MongoDB count branch

        Has no input: the total is always counted
    """

    query_object_section_name = 'count'

    def __init__(self, count_field='total'):
        """ Init a count

        :param count_field: The name of the field $count writes its result into
        """
        super(MongoCount, self).__init__()

        # Config
        self.count_field = count_field

    # Not Implemented for this Query Object handler
    compile_statement = NotImplemented
    compile_stages = NotImplemented

    def compile_statements(self):
        """ Compile the count branch of the $facet """
        return [
            {'$count': self.count_field},
        ]

"""

MongoGrid lets the API user query any collection of any database with a small vocabulary:
free-text search, filters, sorting, and pagination.
Every request returns one page of documents, and the total number of documents that matched.

The Query Object is split between the URL query string and the request body:

```
POST /myDatabase/myCollection?search=iPhone&sort=Price asc&page=0&pageSize=10

[
    { "field": "Price", "operator": ">", "value": "30" }
]
```



Query Object Syntax
-------------------

* `search`: [Search Operation](#search-operation) full-text search over the whole collection
* `filter`: [Filter Operation](#filter-operation) filters the results, using your criteria (the request body)
* `sort`: [Sort Operation](#sort-operation) determines the sorting of the results
* `page`, `pageSize`: [Pagination](#pagination-operation): paginates the results
* The total count is always returned: [Count Operation](#count-operation)

The stages are always emitted in the same order, no matter which of them are present:

1. `$search`: text search runs on the whole collection
2. `$match`: filters narrow down the search results
3. `$sort`: the filtered results are sorted
4. `$facet`: the sorted results are paginated and counted, at once

Detailed syntax for every operation is provided in the relevant sections.
"""

from .search import MongoSearch
from .filter import MongoFilter, \
    FilterExpressionBase, FilterFieldExpression, LiteralExpression
from .sort import MongoSort
from .limit import MongoLimit
from .count import MongoCount

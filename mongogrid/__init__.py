"""
MongoGrid is a query engine that lets you query any [MongoDB](https://www.mongodb.com/) collection
with a small, declarative vocabulary: search, filter, sort, paginate.

The main use case is the interation with data grids in the UI:
every time the UI needs some *sorting*, *filtering*, *search*, or *pagination*,
you won't have to write a single line of repetitive code!

The API user sends the Query Object along with the request,
and gets a page of documents together with the total count:

```javascript
$.post('/api/myDatabase/products?search=iPhone&sort=Price asc&page=0&pageSize=10',
    JSON.stringify([
        { field: 'Price', operator: '>', value: '30' },  // Price > 30
        { field: 'inStock', operator: 'is', value: 'true' },  // inStock == true
    ]))
// -> { data: [ ... ], total: 42 }
```

Works with any collection: no models, no schemas.
"""

# Exceptions that are used here and there
from .exc import *

# Operators that filter descriptors can use
from .operators import Operator

# The heart of MongoGrid are the handlers:
# that's where your JSON objects are converted to actual aggregation pipeline stages!
from . import handlers

# MongoPipeline is the man that parses your Query Object and feeds it to the handlers.
from .query import MongoPipeline

# CrudHelper is something that enables you to use JSON for:
# - Reading (i.e. query a collection using the Query Object)
# - Creation (i.e. insert a document, with dates coerced using the collection's validator)
# - Modification (i.e. update some specific fields of a document)
# - Deletion
from .crud import CrudHelper, CrudViewMixin

# Helpers
# Pipeline wrapper that is able to get a page and count() at the same time
from .util import CountingPipeline, PageResult

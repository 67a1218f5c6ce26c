"""
### Search Operation
Full-text search over every indexed field of the collection.

Example:

```
POST /myDatabase/myCollection?search=iPhone 15
```

The search runs against the whole collection, before any filtering:
the `$search` stage is always the first stage of the pipeline.
It requires an Atlas Search index on the collection.
"""

from .base import MongoPipelineHandlerBase


class MongoSearch(MongoPipelineHandlerBase):
    """ Atlas Search: full-text query over all fields

        * None, or a blank string: no search
        * 'text': search for the text in every indexed field
    """

    query_object_section_name = 'search'

    def __init__(self, search_index=None):
        """ Init a search

        :param search_index: Name of the Atlas Search index to use. `None` uses the index called "default".
        """
        super(MongoSearch, self).__init__()

        # Config
        self.search_index = search_index

        # On input
        #: The text to search for, or None
        self.text = None

    def input(self, text=None):
        super(MongoSearch, self).input(text)

        if not isinstance(text, (str, NoneType)):
            self._raise_invalid_type(text, 'a string')

        # Blank search is no search
        self.text = text if text and text.strip() else None
        return self

    def is_input_empty(self):
        return self.text is None

    def compile_statement(self):
        """ Compile the $search operator """
        search = {
            'text': {
                'query': self.text,
                'path': {'wildcard': '*'},
            }
        }
        if self.search_index:
            search['index'] = self.search_index
        return search

    # Not Implemented for this Query Object handler
    compile_statements = NotImplemented

    def compile_stages(self):
        if self.text is None:
            return []
        return [{'$search': self.compile_statement()}]

    def get_final_input_value(self):
        return self.text


NoneType = type(None)

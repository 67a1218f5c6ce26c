from copy import deepcopy

import mongomock


def fake_response(data=(), total=None):
    """ Build the one document a $facet pipeline produces """
    return {
        'data': list(data),
        'count': [] if total is None else [{'total': total}],
    }


class FakeCollection:
    """ A collection that records pipelines and returns a canned $facet response

        Used where mongomock can't help: Atlas-only stages ($search), and backend failures.
    """

    def __init__(self, response=None, error=None, name='products', database='shop'):
        self.response = response
        self.error = error
        self.name = name
        self.full_name = '{}.{}'.format(database, name)

        #: Every pipeline that was submitted
        self.pipelines = []

    def aggregate(self, pipeline):
        self.pipelines.append(deepcopy(pipeline))
        if self.error is not None:
            raise self.error
        return iter([] if self.response is None else [self.response])


def collection_info(name, validator=None):
    """ A document like the ones list_collections() yields """
    options = {} if validator is None else {'validator': validator}
    return {'name': name, 'type': 'collection', 'options': options}


def json_schema_validator(**properties):
    """ A $jsonSchema validator with the given properties """
    return {'$jsonSchema': {'bsonType': 'object', 'properties': properties}}


def fake_list_collections(*infos):
    """ A replacement for Database.list_collections() that honors the `name` filter """
    def list_collections(*args, filter=None, **kwargs):
        name = (filter or {}).get('name')
        return iter([info for info in infos if name is None or info['name'] == name])
    return list_collections


class MongomockMixin:
    """ unittest mixin with an in-memory MongoDB """

    def setUp(self):
        super().setUp()
        self.client = mongomock.MongoClient()
        self.db = self.client['shop']

    def insert_products(self):
        """ 5 in-stock items priced 10..50, and 3 out-of-stock items """
        self.db['products'].insert_many(
            [{'Name': 'Item {}'.format(price), 'Price': price, 'inStock': True}
             for price in (30, 10, 50, 20, 40)] +
            [{'Name': 'Gone {}'.format(price), 'Price': price, 'inStock': False}
             for price in (15, 35, 60)]
        )

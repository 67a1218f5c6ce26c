import unittest
from datetime import datetime, timezone
from unittest.mock import patch

import mongomock
from bson import ObjectId
from pymongo.errors import WriteError, OperationFailure

from mongogrid import CrudHelper
from mongogrid.crud.crudhelper import parse_id
from mongogrid.exc import InvalidQueryError, InvalidValueError, ValidationError, ExecutionError

from .util import MongomockMixin, collection_info, json_schema_validator, fake_list_collections


EVENT_SCHEMA = json_schema_validator(
    title={'bsonType': 'string'},
    startsAt={'bsonType': 'date'},
    endsAt={'bsonType': ['date', 'null']},
    attendees={'bsonType': 'int'},
)


class CrudHelperTest(MongomockMixin, unittest.TestCase):
    """ Test CrudHelper writes and schema introspection """

    maxDiff = None

    def setUp(self):
        super().setUp()
        self.crudhelper = CrudHelper()

    def with_collections(self, *infos):
        """ Fake the validators of collections """
        return patch.object(mongomock.Database, 'list_collections', create=True,
                            side_effect=fake_list_collections(*infos))

    def test_schema(self):
        with self.with_collections(collection_info('events', EVENT_SCHEMA), collection_info('notes')):
            # Validator
            self.assertEqual(self.crudhelper.get_validator(self.db, 'events'), EVENT_SCHEMA)
            self.assertEqual(set(self.crudhelper.get_validator_schema(self.db, 'events')),
                             {'title', 'startsAt', 'endsAt', 'attendees'})

            # No validator
            self.assertIsNone(self.crudhelper.get_validator(self.db, 'notes'))
            self.assertEqual(self.crudhelper.get_validator_schema(self.db, 'notes'), {})

            # No collection
            self.assertIsNone(self.crudhelper.get_validator(self.db, 'missing'))
            self.assertEqual(self.crudhelper.get_validator_schema(self.db, 'missing'), {})

        # Validator without $jsonSchema
        with self.with_collections(collection_info('events', {'title': {'$type': 'string'}})):
            self.assertEqual(self.crudhelper.get_validator_schema(self.db, 'events'), {})

    def test_schema_error(self):
        with patch.object(mongomock.Database, 'list_collections', create=True,
                          side_effect=OperationFailure('not authorized', code=13)):
            with self.assertRaises(ExecutionError) as e:
                self.crudhelper.get_validator(self.db, 'events')
            self.assertEqual(e.exception.code, 13)

    def test_date_fields(self):
        self.assertEqual(CrudHelper.date_fields(EVENT_SCHEMA['$jsonSchema']['properties']),
                         {'startsAt', 'endsAt'})
        self.assertEqual(CrudHelper.date_fields({}), set())
        self.assertEqual(CrudHelper.date_fields({'a': {}, 'b': None, 'c': {'bsonType': 'string'}}), set())

    def test_coerce(self):
        properties = EVENT_SCHEMA['$jsonSchema']['properties']
        coerce = lambda d: self.crudhelper.coerce_entity_dict(d, properties)

        # ISO strings
        self.assertEqual(coerce({'title': '2024-01-01', 'startsAt': '2024-01-01T10:00:00Z'}), {
            'title': '2024-01-01',  # not a date field
            'startsAt': datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc),
        })
        # Date only; offset
        self.assertEqual(coerce({'startsAt': '2024-01-01'})['startsAt'],
                         datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(coerce({'startsAt': '2024-01-01T12:00:00+02:00'})['startsAt'],
                         datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc))
        # Milliseconds since the epoch
        self.assertEqual(coerce({'startsAt': 0})['startsAt'],
                         datetime(1970, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(coerce({'startsAt': 1704103200000})['startsAt'],
                         datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc))
        # null stays null
        self.assertEqual(coerce({'endsAt': None}), {'endsAt': None})
        # Absent fields stay absent
        self.assertEqual(coerce({'attendees': 5}), {'attendees': 5})

        # Invalid dates
        for value in ('yesterday', '2024-13-01', '', True, [2024],
                      # Milliseconds beyond the year 9999
                      10 ** 20, -10 ** 20, 10 ** 400, float('nan'), float('inf')):
            with self.assertRaises(InvalidValueError, msg=repr(value)) as e:
                coerce({'startsAt': value})
            self.assertEqual(e.exception.field, 'startsAt')
            self.assertEqual(e.exception.status, 400)

    def test_create(self):
        with self.with_collections(collection_info('events', EVENT_SCHEMA)):
            res = self.crudhelper.create(self.db, 'events', {'title': 'Launch', 'startsAt': '2024-01-01T10:00:00Z'})

        self.assertTrue(res['acknowledged'])
        self.assertIsInstance(res['insertedId'], ObjectId)

        doc = self.db['events'].find_one({'_id': res['insertedId']})
        self.assertEqual(doc['title'], 'Launch')
        self.assertIsInstance(doc['startsAt'], datetime)
        self.assertEqual((doc['startsAt'].year, doc['startsAt'].month, doc['startsAt'].day), (2024, 1, 1))

    def test_create_without_validator(self):
        with self.with_collections(collection_info('notes')):
            res = self.crudhelper.create(self.db, 'notes', {'text': 'hi', 'when': '2024-01-01T10:00:00Z'})

        # Written as is
        doc = self.db['notes'].find_one({'_id': res['insertedId']})
        self.assertEqual(doc['when'], '2024-01-01T10:00:00Z')

    def test_create_errors(self):
        with self.with_collections(collection_info('events', EVENT_SCHEMA)):
            # Not an object
            for value in (None, [], 'x', 1):
                with self.assertRaises(InvalidQueryError, msg=repr(value)):
                    self.crudhelper.create(self.db, 'events', value)

            # Bad date: nothing is written
            with self.assertRaises(InvalidValueError):
                self.crudhelper.create(self.db, 'events', {'title': 'Launch', 'startsAt': 'soon'})
            self.assertEqual(self.db['events'].count_documents({}), 0)

            # The validator rejects the document
            error = WriteError('Document failed validation', code=121, details={
                'errInfo': {'failingDocumentId': 1, 'details': {'operatorName': '$jsonSchema'}},
            })
            with patch.object(mongomock.Collection, 'insert_one', side_effect=error):
                with self.assertRaises(ValidationError) as e:
                    self.crudhelper.create(self.db, 'events', {'title': 1})
            self.assertEqual(e.exception.details, {'operatorName': '$jsonSchema'})

    def test_update(self):
        self.db['events'].insert_one({'_id': 1, 'title': 'Launch', 'attendees': 5})

        with self.with_collections(collection_info('events', EVENT_SCHEMA)):
            res = self.crudhelper.update(self.db, 'events', '1', {'startsAt': '2024-01-01T10:00:00Z'})
            self.assertEqual(res, dict(acknowledged=True, matchedCount=1, modifiedCount=1,
                                       upsertedId=None, upsertedCount=0))

            # Partial update: other fields are kept
            doc = self.db['events'].find_one({'_id': 1})
            self.assertEqual((doc['title'], doc['attendees']), ('Launch', 5))
            self.assertIsInstance(doc['startsAt'], datetime)

            # No such document
            res = self.crudhelper.update(self.db, 'events', '2', {'title': 'Nope'})
            self.assertEqual((res['matchedCount'], res['modifiedCount']), (0, 0))

            # Not an object
            with self.assertRaises(InvalidQueryError):
                self.crudhelper.update(self.db, 'events', '1', ['title'])

    def test_update_object_id(self):
        _id = self.db['notes'].insert_one({'text': 'hi'}).inserted_id

        with self.with_collections(collection_info('notes')):
            res = self.crudhelper.update(self.db, 'notes', str(_id), {'text': 'bye'})
        self.assertEqual(res['matchedCount'], 1)
        self.assertEqual(self.db['notes'].find_one({'_id': _id})['text'], 'bye')

    def test_delete(self):
        self.db['notes'].insert_many([{'_id': 1}, {'_id': 'abc'}])

        self.assertEqual(self.crudhelper.delete(self.db, 'notes', '1'), dict(acknowledged=True, deletedCount=1))
        self.assertEqual(self.crudhelper.delete(self.db, 'notes', '1'), dict(acknowledged=True, deletedCount=0))
        self.assertEqual(self.crudhelper.delete(self.db, 'notes', 'abc')['deletedCount'], 1)
        self.assertEqual(self.db['notes'].count_documents({}), 0)

    def test_parse_id(self):
        self.assertEqual(parse_id('12'), 12)
        self.assertEqual(parse_id('-3'), -3)
        self.assertEqual(parse_id('5f43a1e2b3c4d5e6f7a8b9c0'), ObjectId('5f43a1e2b3c4d5e6f7a8b9c0'))
        self.assertEqual(parse_id('abc'), 'abc')
        self.assertEqual(parse_id('5f43a1e2'), '5f43a1e2')
        self.assertEqual(parse_id(7), 7)

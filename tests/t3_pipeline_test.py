import unittest
from copy import copy

from mongogrid import MongoPipeline, CrudHelper, CountingPipeline
from mongogrid.exc import InvalidQueryError, InvalidOperatorError, DisabledError


FACET_PAGE_0 = {'$facet': {
    'data': [{'$skip': 0}, {'$limit': 10}],
    'count': [{'$count': 'total'}],
}}


class PipelineTest(unittest.TestCase):
    """ Test MongoPipeline: stage composition """

    maxDiff = None

    def test_empty_query(self):
        # Only pagination and count
        self.assertEqual(MongoPipeline().query().end(), [FACET_PAGE_0])

    def test_stage_order(self):
        pipeline = MongoPipeline().query(
            # Keyword order should not matter
            pageSize='2',
            sort='Price asc',
            filter=[{'field': 'inStock', 'operator': 'is', 'value': 'true'}],
            page='1',
            search='iPhone',
        ).end()

        self.assertEqual(pipeline, [
            {'$search': {'text': {'query': 'iPhone', 'path': {'wildcard': '*'}}}},
            {'$match': {'$and': [{'inStock': {'$eq': True}}]}},
            {'$sort': {'Price': 1}},
            {'$facet': {
                'data': [{'$skip': 2}, {'$limit': 2}],
                'count': [{'$count': 'total'}],
            }},
        ])

    def test_optional_stages(self):
        # No filter: no $match
        pipeline = MongoPipeline().query(search='iPhone', sort='Price asc', filter=[]).end()
        self.assertEqual([list(stage)[0] for stage in pipeline], ['$search', '$sort', '$facet'])

        # Filter only
        pipeline = MongoPipeline().query(filter=[{'field': 'Price', 'operator': '>', 'value': '30'}]).end()
        self.assertEqual([list(stage)[0] for stage in pipeline], ['$match', '$facet'])

        # Sort only
        pipeline = MongoPipeline().query(sort='Price').end()
        self.assertEqual(pipeline, [{'$sort': {'Price': -1}}, FACET_PAGE_0])

    def test_count_does_not_depend_on_page(self):
        filter = [{'field': 'Price', 'operator': '>', 'value': '30'}]
        pipelines = [MongoPipeline().query(filter=filter, page=str(page), pageSize='3').end()
                     for page in range(4)]

        # Everything but the data branch is the same
        for pipeline in pipelines:
            self.assertEqual(pipeline[:-1], pipelines[0][:-1])
            self.assertEqual(pipeline[-1]['$facet']['count'], [{'$count': 'total'}])

        self.assertEqual([p[-1]['$facet']['data'][0] for p in pipelines],
                         [{'$skip': 0}, {'$skip': 3}, {'$skip': 6}, {'$skip': 9}])

    def test_errors(self):
        # Unknown keys
        with self.assertRaises(InvalidQueryError):
            MongoPipeline().query(limit=10)
        with self.assertRaises(InvalidQueryError):
            MongoPipeline().query(count=True)

        # A bad filter fails the query: there's no pipeline to run
        with self.assertRaises(InvalidOperatorError):
            MongoPipeline().query(search='iPhone', filter=[{'field': 'Price', 'operator': 'gt', 'value': '30'}])

    def test_settings(self):
        mp = MongoPipeline(dict(search_index='products', max_items=5, default_page_size=3, count_field='n'))
        pipeline = mp.query(search='iPhone', pageSize='100').end()
        self.assertEqual(pipeline, [
            {'$search': {'index': 'products', 'text': {'query': 'iPhone', 'path': {'wildcard': '*'}}}},
            {'$facet': {
                'data': [{'$skip': 0}, {'$limit': 5}],
                'count': [{'$count': 'n'}],
            }},
        ])

        self.assertEqual(MongoPipeline(dict(default_page_size=3)).query().end()[-1]['$facet']['data'],
                         [{'$skip': 0}, {'$limit': 3}])

        # force_filter
        pipeline = MongoPipeline(dict(force_filter={'deleted': False})).query().end()
        self.assertEqual(pipeline[0], {'$match': {'$and': [{'deleted': False}]}})

        # Typos are reported
        with self.assertRaises(KeyError):
            MongoPipeline(dict(max_itemz=5))

    def test_disabled_handlers(self):
        mp = lambda: MongoPipeline(dict(search_enabled=False, sort_enabled=False))

        with self.assertRaises(DisabledError):
            mp().query(search='iPhone')
        with self.assertRaises(DisabledError):
            mp().query(sort='Price asc')

        # No input: no problem
        self.assertEqual(mp().query(filter=[]).end(), [FACET_PAGE_0])

        # Pagination can be disabled too: defaults are used
        with self.assertRaises(DisabledError):
            MongoPipeline(dict(limit_enabled=False)).query(page='1')
        self.assertEqual(MongoPipeline(dict(limit_enabled=False)).query().end(), [FACET_PAGE_0])

    def test_copy(self):
        pristine = MongoPipeline(dict(max_items=50))

        first = copy(pristine).query(sort='Price asc', filter=[{'field': 'Price', 'operator': '>', 'value': '30'}])
        second = copy(pristine).query(pageSize='20')

        # Separate objects with separate state
        self.assertIsNot(first, second)
        self.assertIsNot(first.handler_sort, second.handler_sort)
        self.assertEqual(first.end()[:2], [
            {'$match': {'$and': [{'Price': {'$gt': 30}}]}},
            {'$sort': {'Price': 1}},
        ])
        self.assertEqual(second.end(), [{'$facet': {
            'data': [{'$skip': 0}, {'$limit': 20}],
            'count': [{'$count': 'total'}],
        }}])

        # The original has not received any input: it can be copied again
        self.assertIsNone(pristine.handler_sort.sort_spec)
        self.assertEqual(copy(pristine).query().end()[-1]['$facet']['data'], [{'$skip': 0}, {'$limit': 10}])

        # A MongoPipeline itself can only be used once
        mp = MongoPipeline()
        mp.query()
        with self.assertRaises(RuntimeError):
            mp.query()

        # CrudHelper copies its pipeline for every query
        crudhelper = CrudHelper(max_items=50)
        self.assertEqual(crudhelper.query_collection(dict(sort='Price asc')).end()[0], {'$sort': {'Price': 1}})
        self.assertEqual(crudhelper.query_collection(None).end(), [FACET_PAGE_0])

    def test_final_query_object(self):
        mp = MongoPipeline().query(search='iPhone', sort='Price asc', page='1',
                                   filter=[{'field': 'Price', 'operator': '>', 'value': '30'}])
        self.assertEqual(mp.get_final_query_object(), dict(
            search='iPhone',
            filter=[{'field': 'Price', 'operator': '>', 'value': '30'}],
            sort='Price asc',
            page=1,
            pageSize=10,
        ))

    def test_end_count(self):
        qc = MongoPipeline(dict(count_field='n')).query(sort='Price asc').end_count()
        self.assertIsInstance(qc, CountingPipeline)
        self.assertEqual(qc.pipeline[0], {'$sort': {'Price': 1}})
        self.assertEqual(qc.pipeline[-1]['$facet']['count'], [{'$count': 'n'}])

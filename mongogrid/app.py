"""
HTTP API for MongoGrid

    POST   /<database>/<collection>            query: ?search=&sort=&page=&pageSize=, body: filter descriptors
    GET    /<database>/<collection>/schema     the collection's validator
    POST   /<database>/<collection>/insert     insert a document
    PUT    /<database>/<collection>/<id>       update some fields of a document
    DELETE /<database>/<collection>/<id>       delete a document
    GET    /                                   list databases and their collections

Errors are reported as `{ status, message }`, plus `validationErrorDetails` when the
collection's validator rejected a write.
"""

from datetime import datetime
from logging import getLogger

from bson import ObjectId
from flask import Flask, Blueprint, current_app, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask.views import MethodView
from pymongo import MongoClient
from werkzeug.exceptions import HTTPException

from . import store
from .crud import CrudHelper, CrudViewMixin
from .exc import BaseMongoGridException, ValidationError

logger = getLogger(__name__)

#: Query string arguments that make the Query Object
QUERY_ARGS = ('search', 'sort', 'page', 'pageSize')

api = Blueprint('mongogrid', __name__)


class MongoJSONProvider(DefaultJSONProvider):
    """ JSON provider that knows about BSON types """

    @staticmethod
    def default(o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


class CollectionViewBase(CrudViewMixin, MethodView):
    """ CRUD view over the collection named in the URL

        Every route receives `database` and `collection`: they're taken by dispatch_request(),
        and the remaining URL arguments go to the method handler.
    """

    def __init__(self):
        super(CollectionViewBase, self).__init__()
        ext = current_app.extensions['mongogrid']
        self.crudhelper = ext['crudhelper']
        self._client = ext['client']  # type: MongoClient
        self._database = None
        self._collection = None

    def dispatch_request(self, database, collection, **kwargs):
        self._database = database
        self._collection = collection
        return super(CollectionViewBase, self).dispatch_request(**kwargs)

    def _get_db(self):
        return self._client[self._database]

    def _get_collection_name(self):
        return self._collection

    def _get_query_object(self):
        return {name: request.args[name]
                for name in QUERY_ARGS
                if name in request.args}

    def _get_filter_descriptors(self):
        # No body: no filters
        if not request.get_data():
            return None
        # Malformed JSON is a BadRequest
        return request.get_json(force=True)


class CollectionView(CollectionViewBase):
    """ The collection: query it, or look at its schema """

    def post(self):
        """ Query: POST /<database>/<collection> """
        return jsonify(self._method_list()._asdict())

    def get(self):
        """ Schema: GET /<database>/<collection>/schema """
        return jsonify(self._method_schema())


class DocumentView(CollectionViewBase):
    """ Documents of the collection: insert, update, delete """

    def post(self):
        """ Insert: POST /<database>/<collection>/insert """
        return jsonify(self._method_create(request.get_json(force=True)))

    def put(self, id):
        return jsonify(self._method_update(id, request.get_json(force=True)))

    def delete(self, id):
        return jsonify(self._method_delete(id))


@api.route('/', methods=['GET'])
def databases():
    return jsonify(store.list_databases(current_app.extensions['mongogrid']['client']))


collection_view = CollectionView.as_view('collection')
api.add_url_rule('/<database>/<collection>', view_func=collection_view, methods=['POST'])
api.add_url_rule('/<database>/<collection>/schema', view_func=collection_view, methods=['GET'])

document_view = DocumentView.as_view('document')
api.add_url_rule('/<database>/<collection>/insert', view_func=document_view, methods=['POST'])
api.add_url_rule('/<database>/<collection>/<id>', view_func=document_view, methods=['PUT', 'DELETE'])


def handle_error(e: Exception):
    """ Report every failure as { status, message } """
    if isinstance(e, HTTPException):
        error = dict(status=e.code, message=e.description)
    elif isinstance(e, BaseMongoGridException):
        error = dict(status=e.status, message=str(e))
        if isinstance(e, ValidationError):
            error['validationErrorDetails'] = e.details
    else:
        error = dict(status=500, message='Something went wrong')

    if error['status'] >= 500:
        logger.exception('%s %s failed', request.method, request.path, exc_info=e)
    else:
        logger.warning('%s %s rejected: %s', request.method, request.path, error['message'])

    return jsonify(error), error['status']


def log_request(response):
    """ Access log: one line per request """
    logger.info('%s %s %s', request.method, request.full_path.rstrip('?'), response.status_code)
    return response


def create_app(client: MongoClient, handler_settings: dict = None) -> Flask:
    """ Create the application

    :param client: Connected MongoClient. It's shared by all requests.
    :param handler_settings: Settings for MongoPipeline: see `mongogrid.query.MongoPipeline`
    """
    app = Flask(__name__)
    app.json = MongoJSONProvider(app)

    app.extensions['mongogrid'] = dict(
        client=client,
        crudhelper=CrudHelper(**(handler_settings or {})),
    )

    app.register_blueprint(api)
    app.register_error_handler(Exception, handle_error)
    app.after_request(log_request)
    return app

from .crudhelper import CrudHelper
from .crudview import CrudViewMixin, CRUD_METHOD


class BaseMongoGridException(Exception):
    """ Base class for every error raised by MongoGrid

        `status` is the HTTP status the error is reported with
    """
    status = 500


class InvalidQueryError(BaseMongoGridException):
    """ Invalid input provided by the User """
    status = 400

    def __init__(self, err: str):
        super(InvalidQueryError, self).__init__('Query object error: {err}'.format(err=err))


class DisabledError(InvalidQueryError):
    """ The feature is disabled """


class InvalidOperatorError(InvalidQueryError):
    """ Filter mentioned an operator that is not in the operator table """

    def __init__(self, operator: str, field: str):
        self.operator = operator
        self.field = field

        super(InvalidOperatorError, self).__init__(
            'Invalid operator "{operator}" specified in filter for field "{field}"'.format(
                operator=operator,
                field=field)
        )


class InvalidValueError(InvalidQueryError):
    """ A value could not be coerced to the type its operator requires """

    def __init__(self, field: str, operator: str, value, kind: str):
        self.field = field
        self.operator = operator
        self.value = value
        self.kind = kind

        super(InvalidValueError, self).__init__(
            'Invalid {kind} value {value!r} for operator "{operator}" on field "{field}"'.format(
                kind=kind,
                value=value,
                operator=operator,
                field=field)
        )


class ExecutionError(BaseMongoGridException):
    """ The store could not run a pipeline or a write

        Carries the diagnostic of the backend: its message, error code, and raw details
    """

    #: The error code the server uses for documents that fail collection validation
    VALIDATION_ERROR_CODE = 121

    def __init__(self, message: str, code: int = None, details=None):
        self.code = code
        self.details = details
        super(ExecutionError, self).__init__(message)

    @classmethod
    def from_pymongo(cls, error):
        """ Wrap an error of the driver: `pymongo.errors.PyMongoError`, or a BSON encoding error

            Document validation failures become a `ValidationError`.

            :type error: Exception
            :rtype: ExecutionError
        """
        code = getattr(error, 'code', None)
        details = getattr(error, 'details', None)

        if code == cls.VALIDATION_ERROR_CODE:
            err_info = (details or {}).get('errInfo') or {}
            return ValidationError(str(error), code, err_info.get('details'))
        return cls(str(error), code, details)


class ValidationError(ExecutionError):
    """ A write was rejected by the collection's schema validator

        `details` is the list of validation failures reported by the server
    """
    status = 400

"""
### Filter Operation
Filtering corresponds to the `$match` stage of an aggregation pipeline.

The filter is an ordered list of filter descriptors, sent as the request body:

```javascript
// POST /myDatabase/myCollection
[
    { "field": "Price", "operator": ">", "value": "30" },
    { "field": "Name", "operator": "contains", "value": "iPhone" },
    { "field": "inStock", "operator": "is", "value": "true" },
]
```

All descriptors are AND-ed together, and compiled into a single stage:

```javascript
{ $match: { $and: [
    { Price: { $gt: 30 } },
    { Name: { $regex: ".*iPhone.*" } },
    { inStock: { $eq: true } },
] } }
```

Values are always given as text; every operator coerces it to the type it needs.
See `mongogrid.operators` for the list of operators.

An empty list (or no body at all) produces no `$match` stage at all.
A single invalid descriptor fails the whole filter: nothing is sent to the database.
"""

from collections.abc import Mapping

from .base import MongoPipelineHandlerBase
from .. import operators
from ..exc import InvalidQueryError


# region Filter Expression Classes

class FilterExpressionBase:
    """ An expression from the MongoFilter object """

    __slots__ = ()

    def compile_expression(self):
        """ Compiles the expression into a MongoDB predicate """
        raise NotImplementedError()

    @staticmethod
    def anded_together(conditions):
        """ Take a list of conditions and AND them together into a single MongoDB criteria

            :type conditions: list[dict]
            :rtype: dict
        """
        return {'$and': list(conditions)}


class LiteralExpression(FilterExpressionBase):
    """ An expression that is already compiled and ready to be used

        This is used for expressions that were given as raw MongoDB criteria; e.g. force_filter expressions.
    """
    __slots__ = ('expression',)

    def __init__(self, expression):
        self.expression = expression  # type: dict

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.expression)

    def compile_expression(self):
        return self.expression


class FilterFieldExpression(FilterExpressionBase):
    """ An expression involving a field: a parsed filter descriptor

        Consists of: a field, an operator, and a value to compare the field to.
        The value is coerced right away, so that an invalid one is reported before any query is made.
    """

    __slots__ = ('field', 'operator', 'value', 'value_expression')

    def __init__(self, field, operator, value):
        """ Init a field expression

        :param field: Name of the document field
        :param operator: The operator
        :type operator: mongogrid.operators.Operator
        :param value: The raw value, as provided by the user
        :raises InvalidValueError: the value can't be coerced
        """
        self.field = field
        self.operator = operator
        self.value = value

        # Coerced value: this is what goes into the query
        self.value_expression = operators.coerce_value(operator, field, value)

    def __repr__(self):
        return '{} {} {!r}'.format(self.field, self.operator.value, self.value)

    def compile_expression(self):
        return {self.field: operators.build_condition(self.operator, self.value_expression)}

# endregion


class MongoFilter(MongoPipelineHandlerBase):
    """ MongoGrid filter expression.

        * None, or []: no filtering
        * [ {field, operator, value}, ... ]: a list of descriptors, AND-ed together
    """

    query_object_section_name = 'filter'

    def __init__(self, force_filter=None):
        """ Init a filter expression

        :param force_filter: A filtering condition that will be forcefully applied to every query.
            Can be:
                * a list of filter descriptors, in the same format the user provides ;
                * a dict: raw MongoDB criteria, ANDed to every request.
        """
        # Parent
        super(MongoFilter, self).__init__()

        # On input
        #: list[FilterExpressionBase]
        self.expressions = None

        # Extra configuration: force_filter
        if force_filter is None:
            self.force_filter = None
        elif isinstance(force_filter, Mapping):
            self.force_filter = dict(force_filter)
        elif isinstance(force_filter, (list, tuple)):
            self.force_filter = list(force_filter)
            # just for the sake of validation
            self._parse_descriptors(self.force_filter)
        else:
            raise ValueError(force_filter)

    # These classes implement compilation
    # You can override them, if necessary
    _FIELD_EXPRESSION_CLS = FilterFieldExpression
    _LITERAL_EXPRESSION_CLS = LiteralExpression

    def input(self, descriptors=None):
        # Process input
        super(MongoFilter, self).input(descriptors)
        self.expressions = self._parse_descriptors(descriptors)

        # Apply force_filter
        if isinstance(self.force_filter, dict):
            self.expressions.append(self._LITERAL_EXPRESSION_CLS(self.force_filter))
        elif self.force_filter:
            self.expressions.extend(self._parse_descriptors(self.force_filter))

        return self

    def merge(self, descriptors):
        self.expressions.extend(self._parse_descriptors(descriptors))
        return self

    def is_input_empty(self):
        return not self.expressions

    def _parse_descriptors(self, descriptors):
        """ Parse a list of filter descriptors and return a list of parsed objects.

        Parsing does all the validation and type coercion, so that compilation can't fail.

        :type descriptors: list[dict] | None
        :rtype: list[FilterExpressionBase]
        :raises InvalidQueryError: malformed descriptor
        :raises InvalidOperatorError: unknown operator
        :raises InvalidValueError: the value can't be coerced
        """
        # None
        if not descriptors:
            descriptors = []

        # Validation base
        if not isinstance(descriptors, (list, tuple)):
            self._raise_invalid_type(descriptors, 'a list of filter descriptors')

        return [self._parse_descriptor(i, descriptor)
                for i, descriptor in enumerate(descriptors)]

    def _parse_descriptor(self, i, descriptor):
        """ Parse a single {field, operator, value} """
        if not isinstance(descriptor, Mapping):
            raise InvalidQueryError('{}: item #{} must be an object with "field", "operator", "value"'
                                    .format(self.query_object_section_name, i))

        field = descriptor.get('field')
        operator_str = descriptor.get('operator')
        value = descriptor.get('value', '')

        if not isinstance(field, str) or not field:
            raise InvalidQueryError('{}: item #{} must have a non-empty "field"'
                                    .format(self.query_object_section_name, i))
        if not isinstance(operator_str, str):
            raise InvalidQueryError('{}: item #{} must have an "operator" for field "{}"'
                                    .format(self.query_object_section_name, i, field))

        # Operator lookup
        operator = operators.lookup_operator(operator_str, field)

        return self._FIELD_EXPRESSION_CLS(field, operator, value)

    def compile_statement(self):
        """ Create the MongoDB criteria

        :rtype: dict
        """
        return self._FIELD_EXPRESSION_CLS.anded_together(
            e.compile_expression()
            for e in self.expressions
        )

    # Not Implemented for this Query Object handler
    compile_statements = NotImplemented

    def compile_stages(self):
        # Only add a $match when there are expressions:
        # an empty filter matches everything, and the database should not even have to look at it
        if not self.expressions:
            return []
        return [{'$match': self.compile_statement()}]

    def get_final_input_value(self):
        return [
            dict(field=e.field, operator=e.operator.value, value=e.value)
            for e in self.expressions
            if isinstance(e, FilterFieldExpression)
        ]

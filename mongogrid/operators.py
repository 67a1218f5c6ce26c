"""
### Filter Operators

Every filter descriptor names one of the operators below.
The operator decides what the `value` string is coerced into, and which MongoDB condition
is built for the field:

| Operator        | Condition                       | Value                          |
|-----------------|---------------------------------|--------------------------------|
| `=`             | `{ field: { $eq: 30 } }`        | number                         |
| `!=`            | `{ field: { $ne: 30 } }`        | number                         |
| `>`, `<`        | `{ field: { $gt/$lt: 30 } }`    | number                         |
| `>=`, `<=`      | `{ field: { $gte/$lte: 30 } }`  | number                         |
| `contains`      | `{ field: { $regex: ".*v.*" } }`| text, taken literally          |
| `not contains`  | `{ field: { $not: {...} } }`    | text, taken literally          |
| `startswith`    | `{ field: { $regex: "^v.*" } }` | text, taken literally          |
| `endswith`      | `{ field: { $regex: ".*v$" } }` | text, taken literally          |
| `equals`        | `{ field: { $eq: "v" } }`       | text                           |
| `not equals`    | `{ field: { $ne: "v" } }`       | text                           |
| `is empty`      | `{ field: { $eq: "" } }`        | ignored                        |
| `is not empty`  | `{ field: { $ne: "" } }`        | ignored                        |
| `is`            | `{ field: { $eq: true } }`      | `"true"` is true, else false   |

Note that `is empty` only matches an empty string: documents that lack the field are not matched.
"""

import math
import re
from enum import Enum

from .exc import InvalidOperatorError, InvalidValueError


class Operator(str, Enum):
    """ Filter operator tokens """
    EQ = '='
    NE = '!='
    GT = '>'
    LT = '<'
    GTE = '>='
    LTE = '<='
    CONTAINS = 'contains'
    NOT_CONTAINS = 'not contains'
    STARTSWITH = 'startswith'
    ENDSWITH = 'endswith'
    EQUALS = 'equals'
    NOT_EQUALS = 'not equals'
    IS_EMPTY = 'is empty'
    IS_NOT_EMPTY = 'is not empty'
    IS = 'is'


#: The range of integers BSON can store
INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


# region Value coercion

# Every coercion function: (field, operator, value) -> coerced value

def coerce_number(field, operator, value):
    """ Parse a number: int when possible, float otherwise

        Integers that don't fit into 64 bits become floats.
    """
    if isinstance(value, bool):
        raise InvalidValueError(field, operator, value, 'numeric')
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value if value is not None else '').strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise InvalidValueError(field, operator, value, 'numeric')

    if isinstance(number, int) and not INT64_MIN <= number <= INT64_MAX:
        try:
            number = float(number)
        except OverflowError:
            raise InvalidValueError(field, operator, value, 'numeric')

    # NaN and infinities are rejected
    if isinstance(number, float) and not math.isfinite(number):
        raise InvalidValueError(field, operator, value, 'numeric')
    return number


def coerce_text(field, operator, value):
    return '' if value is None else str(value)


def coerce_pattern(field, operator, value):
    """ Text that goes into a regular expression literally """
    return re.escape(coerce_text(field, operator, value))


def coerce_boolean(field, operator, value):
    """ Only the literal "true" is true """
    return value is True or value == 'true'


def ignore_value(field, operator, value):
    return None

# endregion


#: Operator table: Operator => (coerce function, lambda coerced_value: condition)
_OPERATORS = {
    Operator.EQ:            (coerce_number,  lambda val: {'$eq': val}),
    Operator.NE:            (coerce_number,  lambda val: {'$ne': val}),
    Operator.GT:            (coerce_number,  lambda val: {'$gt': val}),
    Operator.LT:            (coerce_number,  lambda val: {'$lt': val}),
    Operator.GTE:           (coerce_number,  lambda val: {'$gte': val}),
    Operator.LTE:           (coerce_number,  lambda val: {'$lte': val}),
    Operator.CONTAINS:      (coerce_pattern, lambda val: {'$regex': '.*{}.*'.format(val)}),
    Operator.NOT_CONTAINS:  (coerce_pattern, lambda val: {'$not': {'$regex': '.*{}.*'.format(val)}}),
    Operator.STARTSWITH:    (coerce_pattern, lambda val: {'$regex': '^{}.*'.format(val)}),
    Operator.ENDSWITH:      (coerce_pattern, lambda val: {'$regex': '.*{}$'.format(val)}),
    Operator.EQUALS:        (coerce_text,    lambda val: {'$eq': val}),
    Operator.NOT_EQUALS:    (coerce_text,    lambda val: {'$ne': val}),
    Operator.IS_EMPTY:      (ignore_value,   lambda val: {'$eq': ''}),
    Operator.IS_NOT_EMPTY:  (ignore_value,   lambda val: {'$ne': ''}),
    Operator.IS:            (coerce_boolean, lambda val: {'$eq': val}),
}

assert set(_OPERATORS) == set(Operator), 'Operator table is missing: {}'.format(set(Operator) - set(_OPERATORS))


def lookup_operator(operator_str: str, field: str) -> Operator:
    """ Find the Operator for a token

        :raises InvalidOperatorError: unknown token
    """
    try:
        return Operator(operator_str)
    except ValueError:
        raise InvalidOperatorError(operator_str, field)


def coerce_value(operator: Operator, field: str, value):
    """ Coerce a raw value the way `operator` wants it

        :raises InvalidValueError
    """
    coerce, _ = _OPERATORS[operator]
    return coerce(field, operator.value, value)


def build_condition(operator: Operator, coerced_value) -> dict:
    """ Build the MongoDB condition for an already coerced value """
    _, build = _OPERATORS[operator]
    return build(coerced_value)


def compile_fragment(field: str, operator_str: str, value) -> dict:
    """ Compile a single `(field, operator, value)` into a MongoDB predicate: { field: condition }

        :raises InvalidOperatorError: unknown operator
        :raises InvalidValueError: the value can't be coerced
    """
    operator = lookup_operator(operator_str, field)
    return {field: build_condition(operator, coerce_value(operator, field, value))}

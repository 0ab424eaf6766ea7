import math
from flask import request
from app.errors import ApiError

EQUITY_MIN = 0.5
EQUITY_MAX = 99.5

# Upper bound of the INTEGER primary key and offset columns
MAX_DB_INT = 2 ** 31 - 1


def json_body():
    """The request JSON as a dict; a missing body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')
    return data


def parse_positive_int(value, field):
    """
    Coerce a path/body/query value to a positive integer or raise a 400.
    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or value is None:
        raise ApiError(f'{field} must be a positive integer.')
    if isinstance(value, float):
        if not value.is_integer():
            raise ApiError(f'{field} must be a positive integer.')
        value = int(value)
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ApiError(f'{field} must be a positive integer.')
    if number <= 0 or number > MAX_DB_INT:
        raise ApiError(f'{field} must be a positive integer.')
    return number


def parse_optional_id(value, field):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_positive_int(value, field)


def _query_int(name, default):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ApiError(f'{name} must be an integer.')


def parse_pagination(default_limit, max_limit):
    """Read limit/offset (or page) from the query string."""
    limit = _query_int('limit', default_limit)
    if limit <= 0:
        limit = default_limit
    limit = min(limit, max_limit)

    if request.args.get('offset') not in (None, ''):
        offset = max(_query_int('offset', 0), 0)
    else:
        page = max(_query_int('page', 1), 1)
        offset = (page - 1) * limit
    if offset > MAX_DB_INT:
        raise ApiError('offset is too large.')
    return limit, offset


def parse_price(value):
    if isinstance(value, bool):
        raise ApiError('Price must be a non-negative number')
    try:
        price = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ApiError('Price must be a non-negative number')
    if math.isnan(price) or math.isinf(price) or price < 0:
        raise ApiError('Price must be a non-negative number')
    return price


def normalize_equity_percentage(value):
    """
    Validate an equity percentage and snap it to the nearest 0.5 step.

    The range check runs on the raw input, so 0.3 is rejected rather than
    rounded up to 0.5. Halves round up: 1.25 -> 1.5, 1.24 -> 1.0.
    """
    if isinstance(value, bool):
        raise ApiError('equityPercentage must be a number')
    try:
        equity = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ApiError('equityPercentage must be a number')
    if math.isnan(equity) or equity < EQUITY_MIN or equity > EQUITY_MAX:
        raise ApiError(f'equityPercentage must be between {EQUITY_MIN} and {EQUITY_MAX}')
    return math.floor(equity * 2 + 0.5) / 2


def clean_text(value):
    if value is None:
        return ''
    return str(value).strip()


def check_length(value, column, field):
    """Reject text longer than the String column it is stored in."""
    limit = column.type.length
    if value and limit and len(value) > limit:
        raise ApiError(f'{field} must be at most {limit} characters')
    return value

import pytest

from app.errors import ApiError
from app.utils import normalize_equity_percentage, parse_positive_int, parse_price


@pytest.mark.parametrize('raw, expected', [
    (0.5, 0.5),
    (1.24, 1.0),
    (1.25, 1.5),
    ('12.7', 12.5),
    (99.4, 99.5),
    (99.5, 99.5),
])
def test_equity_percentage_snaps_to_half_steps(raw, expected):
    assert normalize_equity_percentage(raw) == expected


@pytest.mark.parametrize('raw', [0.3, 0.49, 99.6, 100, 'lots', None, True])
def test_equity_percentage_rejected(raw):
    with pytest.raises(ApiError) as excinfo:
        normalize_equity_percentage(raw)
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize('raw, expected', [(7, 7), ('12', 12), (3.0, 3)])
def test_parse_positive_int(raw, expected):
    assert parse_positive_int(raw, 'id') == expected


@pytest.mark.parametrize('raw', [0, -4, '1.5', 'abc', None, False, 2.5])
def test_parse_positive_int_rejects(raw):
    with pytest.raises(ApiError):
        parse_positive_int(raw, 'id')


def test_parse_price():
    assert parse_price('0') == 0.0
    assert parse_price(19.99) == 19.99
    for raw in (-0.01, 'free', None, float('nan')):
        with pytest.raises(ApiError):
            parse_price(raw)


def test_parse_positive_int_bounds():
    assert parse_positive_int(2 ** 31 - 1, 'id') == 2 ** 31 - 1
    for raw in (2 ** 31, '99999999999999999999'):
        with pytest.raises(ApiError):
            parse_positive_int(raw, 'id')


def test_huge_integers_do_not_overflow():
    with pytest.raises(ApiError):
        parse_price(10 ** 400)
    with pytest.raises(ApiError):
        normalize_equity_percentage(10 ** 400)

from tender_api.utils.validation import json_object, optional_str, validate_status
from tender_api.errors import ValidationError
import pytest


def test_json_object_treats_missing_body_as_empty():
    assert json_object(None) == {}
    assert json_object({'a': 1}) == {'a': 1}


@pytest.mark.parametrize('payload', [[], [{'a': 1}], 'text', 7, True])
def test_json_object_rejects_non_object(payload):
    with pytest.raises(ValidationError) as exc:
        json_object(payload)
    assert exc.value.code == 400
    assert exc.value.description == 'JSON object body required'


def test_optional_str_passes_strings_and_none():
    assert optional_str('Cement', 'title') == 'Cement'
    assert optional_str('', 'title') == ''
    assert optional_str(None, 'title') is None


@pytest.mark.parametrize('value', [{'a': 1}, ['x'], 3, 1.5, False])
def test_optional_str_rejects_other_types(value):
    with pytest.raises(ValidationError) as exc:
        optional_str(value, 'comments')
    assert exc.value.description == 'comments must be a string'


def test_validate_status_rejects_unhashable_values():
    with pytest.raises(ValidationError):
        validate_status({'x': 1}, ('LOW', 'HIGH'), 'priority')

"""
Tests for request validation helpers.
"""
import pytest
from datetime import date

from shiftplanner.error_handlers.exceptions import ValidationException
from shiftplanner.utils.validators import (
    get_json_body,
    sanitize_request_data,
    validate_date_param,
    validate_required_fields,
)


@pytest.mark.unit
class TestValidators:

    def test_validate_date_param(self):
        assert validate_date_param('2025-10-15') == date(2025, 10, 15)

    @pytest.mark.parametrize('value', [None, '', '15/10/2025', '2025-02-30'])
    def test_validate_date_param_rejects(self, value):
        with pytest.raises(ValidationException) as exc_info:
            validate_date_param(value, 'period_start')
        assert exc_info.value.details['field'] == 'period_start'

    def test_required_fields(self):
        validate_required_fields({'a': 0, 'b': 'x'}, ['a', 'b'])
        with pytest.raises(ValidationException) as exc_info:
            validate_required_fields({'a': '', 'b': None}, ['a', 'b', 'c'])
        assert exc_info.value.details['fields'] == ['a', 'b', 'c']

    def test_json_body_must_be_object(self, app):
        with app.test_request_context(json=[1, 2]):
            with pytest.raises(ValidationException):
                get_json_body()
        with app.test_request_context(data='not json', content_type='text/plain'):
            assert get_json_body() == {}

    def test_sanitize_request_data(self):
        cleaned = sanitize_request_data('{"store_id": "s1", "Token": "abc"}')
        assert cleaned == '{"store_id": "s1", "Token": "[REDACTED]"}'

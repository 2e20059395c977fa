"""
Tests for the error handling decorators.
"""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from shiftplanner.error_handlers import handle_errors, with_db_transaction, ValidationException
from shiftplanner.error_handlers.exceptions import ConfigurationException


@pytest.mark.integration
class TestWithDbTransaction:

    def test_commits_on_success(self, app, models, db_session):
        @handle_errors
        @with_db_transaction
        def add_template():
            db_session.add(models['ShiftTemplate'](id='t1', name='Morning', scope='global'))
            return {'saved': True}

        with app.test_request_context():
            assert add_template() == {'saved': True}
        assert db_session.get(models['ShiftTemplate'], 't1') is not None

    def test_duplicate_key_is_a_conflict(self, app, models, db_session, template_factory):
        template_factory(id='t1')
        db_session.expunge_all()

        @handle_errors
        @with_db_transaction
        def add_duplicate():
            db_session.add(models['ShiftTemplate'](id='t1', name='Again', scope='global'))
            return {'saved': True}

        with app.test_request_context():
            response, status = add_duplicate()
        body = response.get_json()
        assert status == 409
        assert body['error'] == 'DatabaseError'
        assert body['operation'] == 'add_duplicate'
        assert db_session.get(models['ShiftTemplate'], 't1').name == 'Template 1'

    def test_other_database_errors_are_500(self, app, db_session):
        @handle_errors
        @with_db_transaction
        def broken_query():
            db_session.execute(text('SELECT * FROM no_such_table'))

        with app.test_request_context():
            response, status = broken_query()
        assert status == 500
        assert response.get_json()['error'] == 'DatabaseError'

    def test_database_error_keeps_its_cause(self, app, db_session):
        @with_db_transaction
        def broken_query():
            db_session.execute(text('SELECT * FROM no_such_table'))

        with app.test_request_context():
            with pytest.raises(Exception) as excinfo:
                broken_query()
        assert excinfo.value.error_type == 'DatabaseError'
        assert isinstance(excinfo.value.__cause__, OperationalError)

    def test_app_errors_roll_back_and_pass_through(self, app, models, db_session):
        @handle_errors
        @with_db_transaction
        def half_done():
            db_session.add(models['ShiftTemplate'](id='t2', name='Half', scope='global'))
            raise ValidationException("Bad template", details={'field': 'name'})

        with app.test_request_context():
            response, status = half_done()
        assert status == 400
        assert response.get_json()['error'] == 'ValidationError'
        assert db_session.get(models['ShiftTemplate'], 't2') is None


@pytest.mark.unit
def test_missing_model_registry_is_a_configuration_error():
    from flask import Flask
    from shiftplanner.models.registry import get_models

    with Flask(__name__).app_context():
        with pytest.raises(ConfigurationException):
            get_models()

"""
Tests for the in-memory planning session registry.
"""
import pytest
from datetime import date, datetime, timedelta
from flask import Flask

from shiftplanner.error_handlers.exceptions import ResourceNotFoundException
from shiftplanner.services.planning_session import PlanningSession
from shiftplanner.services.session_manager import PlanningSessionManager


def _session():
    return PlanningSession('store-1', date(2025, 10, 13), date(2025, 10, 19))


@pytest.mark.unit
class TestPlanningSessionManager:

    def test_add_and_get(self):
        manager = PlanningSessionManager(timeout_seconds=60)
        session = _session()
        managed = manager.add(session)

        assert manager.get(session.id) is managed
        assert managed.session is session
        assert manager.get_active_session_count() == 1
        assert 0 < managed.get_time_remaining() <= 60

    def test_unknown_session(self):
        manager = PlanningSessionManager()
        with pytest.raises(ResourceNotFoundException):
            manager.get('missing')
        assert manager.find('missing') is None

    def test_expired_session_is_gone(self):
        manager = PlanningSessionManager(timeout_seconds=60)
        session = _session()
        managed = manager.add(session)
        managed.expires_at = datetime.utcnow() - timedelta(seconds=1)

        assert managed.is_expired()
        assert managed.get_time_remaining() == 0
        with pytest.raises(ResourceNotFoundException):
            manager.get(session.id)
        assert session.id not in manager.sessions

    def test_get_refreshes_expiry(self):
        manager = PlanningSessionManager(timeout_seconds=60)
        session = _session()
        managed = manager.add(session)
        managed.expires_at = datetime.utcnow() + timedelta(seconds=5)

        manager.get(session.id)
        assert managed.get_time_remaining() > 5

    def test_cleanup_expired_sessions(self):
        manager = PlanningSessionManager(timeout_seconds=60)
        stale = manager.add(_session())
        manager.add(_session())
        stale.expires_at = datetime.utcnow() - timedelta(seconds=1)

        assert manager.cleanup_expired_sessions() == 1
        assert manager.get_active_session_count() == 1

    def test_remove(self):
        manager = PlanningSessionManager()
        session = _session()
        manager.add(session)
        assert manager.remove(session.id) is True
        assert manager.remove(session.id) is False

    def test_init_app_reads_timeout(self):
        app = Flask(__name__)
        app.config['PLANNING_SESSION_TIMEOUT'] = 90
        manager = PlanningSessionManager()
        manager.init_app(app)
        assert manager.timeout_seconds == 90
        assert app.extensions['planning_sessions'] is manager

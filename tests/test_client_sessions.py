"""
Tests for the per-browser-session client registry
"""
from unittest.mock import Mock

from citizenwatch.client import CitizenClient, ClientSessions
from citizenwatch.config import TestingConfig


class TestClientSessions:

    def setup_method(self):
        self.factory = Mock(side_effect=lambda: object())
        self.on_evict = Mock()
        self.sessions = ClientSessions(self.factory, max_sessions=2, on_evict=self.on_evict)

    def test_same_id_same_entry(self):
        assert self.sessions.get('a') is self.sessions.get('a')
        assert self.factory.call_count == 1

    def test_different_ids_different_entries(self):
        assert self.sessions.get('a') is not self.sessions.get('b')
        assert len(self.sessions) == 2

    def test_least_recently_used_is_evicted(self):
        first = self.sessions.get('a')
        self.sessions.get('b')
        self.sessions.get('a')
        second = self.sessions.get('b')

        self.sessions.get('c')

        assert 'a' in self.sessions
        assert 'b' not in self.sessions
        self.on_evict.assert_called_once_with(second)
        assert self.sessions.get('a') is first

    def test_discard(self):
        entry = self.sessions.get('a')
        self.sessions.discard('a')
        self.sessions.discard('a')

        assert 'a' not in self.sessions
        self.on_evict.assert_called_once_with(entry)

    def test_clients_do_not_share_state(self):
        sessions = ClientSessions(lambda: CitizenClient(TestingConfig))
        alice = sessions.get('alice')
        bob = sessions.get('bob')

        alice.auth.login('alice@x.com', 'pw')

        assert bob.state.current_user is None
        assert bob.session.get_access_token() is None
        assert len(sessions.entries()) == 2

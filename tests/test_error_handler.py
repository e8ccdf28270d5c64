"""
Tests for error classification and category side effects
"""
from unittest.mock import Mock

import pytest

from citizenwatch.client import CitizenClient
from citizenwatch.config import TestingConfig
from citizenwatch.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    ServerError,
    ValidationError,
)
from citizenwatch.models import User
from citizenwatch.services.app_state import AppState
from citizenwatch.services.error_handler import ErrorHandler, ErrorType, USER_MESSAGES
from citizenwatch.services.session_store import SessionStore


class TestClassify:
    """classify is a pure function of the error's shape"""

    def test_mapping_named_authentication_error(self):
        assert ErrorHandler.classify({'name': 'AuthenticationError'}) == ErrorType.AUTH

    def test_type_error_is_network(self):
        assert ErrorHandler.classify(TypeError('Failed to fetch')) == ErrorType.NETWORK

    def test_network_error_is_network(self):
        assert ErrorHandler.classify(NetworkError('connection refused')) == ErrorType.NETWORK

    def test_mapping_with_server_status(self):
        assert ErrorHandler.classify({'status': 503}) == ErrorType.SERVER

    def test_empty_mapping_is_unknown(self):
        assert ErrorHandler.classify({}) == ErrorType.UNKNOWN

    def test_exception_classes(self):
        assert ErrorHandler.classify(AuthenticationError('bad', status=401)) == ErrorType.AUTH
        assert ErrorHandler.classify(ValidationError('bad', status=422)) == ErrorType.VALIDATION
        assert ErrorHandler.classify(ServerError('down', status=500)) == ErrorType.SERVER
        assert ErrorHandler.classify(ApiError('missing', status=404)) == ErrorType.UNKNOWN
        assert ErrorHandler.classify(ValueError('odd')) == ErrorType.UNKNOWN

    def test_mapping_named_validation_error(self):
        assert ErrorHandler.classify({'name': 'ValidationError'}) == ErrorType.VALIDATION

    def test_authentication_checked_before_status(self):
        """Priority: an auth error with a 5xx status is still authentication"""
        assert ErrorHandler.classify({'name': 'AuthenticationError', 'status': 500}) == ErrorType.AUTH

    def test_non_numeric_status_is_unknown(self):
        assert ErrorHandler.classify({'status': 'bad'}) == ErrorType.UNKNOWN

    def test_classify_does_not_touch_state(self):
        """Same input, same answer, no side effects"""
        error = {'status': 502}
        assert ErrorHandler.classify(error) == ErrorHandler.classify(error)
        assert error == {'status': 502}


class TestHandle:
    """handle() side effects per category"""

    def setup_method(self):
        self.session = SessionStore()
        self.session.set_session({'accessToken': 'tok'})
        self.refresher = Mock(return_value='new-tok')
        self.on_redirect = Mock()
        self.on_field_error = Mock()
        self.on_message = Mock()
        self.handler = ErrorHandler(
            self.session,
            token_refresher=self.refresher,
            on_redirect=self.on_redirect,
            on_field_error=self.on_field_error,
            on_message=self.on_message,
            login_url='/login'
        )

    def test_token_expired_triggers_refresh(self):
        result = self.handler.handle(AuthenticationError('Token expired', status=401))

        assert result == ErrorType.AUTH
        self.refresher.assert_called_once()
        self.on_redirect.assert_not_called()
        assert self.session.get_access_token() == 'tok'

    def test_failed_refresh_clears_session_and_redirects(self):
        self.refresher.side_effect = AuthenticationError('Token refresh failed', status=401)

        self.handler.handle(AuthenticationError('token expired', status=401))

        assert self.session.get_access_token() is None
        self.on_redirect.assert_called_once_with('/login')

    def test_no_refresher_bound_signs_out(self):
        self.handler.token_refresher = None
        self.handler.handle({'name': 'AuthenticationError', 'message': 'token expired'})

        assert self.session.get_access_token() is None
        self.on_redirect.assert_called_once_with('/login')

    def test_other_auth_errors_do_not_refresh(self):
        self.handler.handle(AuthenticationError('Invalid credentials', status=401))
        self.refresher.assert_not_called()
        assert self.session.get_access_token() == 'tok'

    def test_validation_errors_reported_per_field(self):
        error = ValidationError('Invalid', errors={'title': 'Title is required',
                                                   'location': 'Location is required'})
        self.handler.handle(error)

        self.on_field_error.assert_any_call('title', 'Title is required')
        self.on_field_error.assert_any_call('location', 'Location is required')
        assert self.on_field_error.call_count == 2

    def test_validation_without_field_errors(self):
        self.handler.handle({'name': 'ValidationError'})
        self.on_field_error.assert_not_called()

    @pytest.mark.parametrize('error, expected', [
        (AuthenticationError('Invalid credentials'), ErrorType.AUTH),
        (NetworkError('refused'), ErrorType.NETWORK),
        (ValidationError('bad'), ErrorType.VALIDATION),
        (ServerError('down', status=500), ErrorType.SERVER),
        (RuntimeError('odd'), ErrorType.UNKNOWN),
    ])
    def test_user_message_published(self, error, expected):
        assert self.handler.handle(error) == expected
        self.on_message.assert_called_once_with(USER_MESSAGES[expected])

    def test_handle_logs(self, caplog):
        self.handler.handle(ServerError('database down', status=500))
        assert 'database down' in caplog.text

    def test_log_output_redacts_email(self, caplog):
        self.handler.handle(ApiError('Unknown account a@b.com', status=404))
        assert 'a@b.com' not in caplog.text


class TestUserFriendlyMessage:

    def setup_method(self):
        self.handler = ErrorHandler(SessionStore())

    def test_fixed_message_per_category(self):
        assert self.handler.get_user_friendly_message(NetworkError('x')) == 'Please check your internet connection.'
        assert self.handler.get_user_friendly_message({'status': 500}) == 'Something went wrong. Please try again later.'
        assert self.handler.get_user_friendly_message({}) == 'An unexpected error occurred.'


class TestFailingCallbacks:
    """A broken UI callback is logged and never replaces the handled error"""

    def setup_method(self):
        self.session = SessionStore()
        self.session.set_session({'accessToken': 'tok'})
        self.state = AppState()
        self.state.set_state(current_user=User(id=1, email='a@b.com'))

    def test_failing_field_callback(self, caplog):
        on_field_error = Mock(side_effect=RuntimeError('ui gone'))
        on_message = Mock()
        handler = ErrorHandler(self.session, on_field_error=on_field_error, on_message=on_message)

        result = handler.handle(ValidationError('bad', errors={'title': 'Title is required',
                                                               'location': 'Location is required'}))

        assert result == ErrorType.VALIDATION
        assert on_field_error.call_count == 2
        on_message.assert_called_once_with(USER_MESSAGES[ErrorType.VALIDATION])
        assert 'on_field_error callback failed' in caplog.text

    def test_failing_redirect_still_signs_out(self):
        handler = ErrorHandler(
            self.session,
            state=self.state,
            token_refresher=Mock(side_effect=AuthenticationError('Token refresh failed')),
            on_redirect=Mock(side_effect=RuntimeError('nav failed'))
        )

        assert handler.handle(AuthenticationError('token expired', status=401)) == ErrorType.AUTH
        assert self.session.get_access_token() is None
        assert self.state.current_user is None

    def test_failing_message_callback(self):
        handler = ErrorHandler(self.session, on_message=Mock(side_effect=RuntimeError('toast failed')))
        assert handler.handle(NetworkError('refused')) == ErrorType.NETWORK

    def test_submit_report_reraises_validation_error(self):
        client = CitizenClient(TestingConfig, on_field_error=Mock(side_effect=RuntimeError('ui gone')))

        with pytest.raises(ValidationError):
            client.incidents.submit_report({'type': 'accident'})


class TestSignOutClearsUser:

    def test_no_refresher_bound_clears_current_user(self):
        session = SessionStore()
        session.set_session({'accessToken': 'tok'})
        state = AppState()
        state.set_state(current_user=User(id=1, email='a@b.com'))
        handler = ErrorHandler(session, state=state)

        handler.handle({'name': 'AuthenticationError', 'message': 'token expired'})

        assert session.get_access_token() is None
        assert state.current_user is None

    def test_client_handler_is_bound_to_state(self):
        client = CitizenClient(TestingConfig)
        assert client.errors.state is client.state

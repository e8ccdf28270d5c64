"""
Test suite for the CitizenWatch reporting client.

This package contains:
- test_app_state.py: State container and subscriber notification tests
- test_session_store.py: Token storage and cookie clearing tests
- test_api_client.py: HTTP transport and status-to-error mapping tests
- test_error_handler.py: Error classification and side effect tests
- test_auth_service.py: Login, registration, logout and refresh tests
- test_incident_service.py: Incident fetch, create, report and filter tests
- test_feed_renderer.py: View model rendering tests
- test_app_api.py: Flask endpoint tests

Run tests:
    pip install -e .[test]
    python -m pytest tests/

Run specific test file:
    python -m pytest tests/test_app_state.py
"""

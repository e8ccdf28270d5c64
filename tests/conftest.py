"""
Shared fixtures: real requests.Response objects for faking the REST backend.
"""
import json
import os
import sys

import pytest
import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


def build_response(status=200, body=None, text=None, url='https://api.test.local/v1'):
    """Build a requests.Response with a JSON (or raw text) body"""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = 'utf-8'
    response.reason = {200: 'OK', 201: 'Created', 204: 'No Content', 400: 'Bad Request',
                       401: 'Unauthorized', 404: 'Not Found', 422: 'Unprocessable Entity',
                       500: 'Internal Server Error', 503: 'Service Unavailable'}.get(status, '')
    if text is not None:
        response._content = text.encode('utf-8')
    elif body is not None:
        response._content = json.dumps(body).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
    else:
        response._content = b''
    return response


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def sample_user():
    return {'id': 1, 'email': 'a@b.com', 'name': 'Alex Reporter', 'role': 'citizen'}


@pytest.fixture
def sample_incidents():
    return [
        {
            'id': 1,
            'type': 'accident',
            'title': 'Traffic Accident on Main Street',
            'description': 'Two-vehicle collision, emergency services on scene',
            'location': 'Main Street and 5th Avenue',
            'timestamp': '2024-02-20T10:30:00',
            'status': 'active'
        },
        {
            'id': 2,
            'type': 'fight',
            'title': 'Disturbance at Central Park',
            'description': 'Group altercation reported near fountain',
            'location': 'Central Park',
            'timestamp': '2024-02-20T09:15:00',
            'status': 'resolved'
        }
    ]

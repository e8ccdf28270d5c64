"""
Feed rendering.

FeedRenderer subscribes to AppState and turns each snapshot into a view model
(auth banner plus filtered incident cards) that the web front serves as JSON.
All user-supplied text is HTML-stripped, so the front can drop it into markup.
"""
from typing import Dict, List, Optional
import logging

from bleach import clean

from citizenwatch.models import Incident, User
from citizenwatch.utils.validators import IncidentValidator

logger = logging.getLogger(__name__)

BADGE_CLASSES = {
    'accident': 'incident-accident',
    'fight': 'incident-fight'
}

SAFE_IMAGE_PREFIXES = ('data:image/', 'https://')


def _text(value) -> str:
    if value is None:
        return ''
    return clean(str(value), tags=[], strip=True)


def format_location(incident: Incident) -> str:
    if incident.has_coordinates:
        lat, lon = incident.location
        return f"{lat:.5f}, {lon:.5f}"
    return _text(incident.location)


def render_incident(incident: Incident) -> Dict:
    """View model for one incident card"""
    incident_type = _text(incident.type).lower()
    return {
        'id': incident.id,
        'type': incident_type,
        'type_label': incident_type.capitalize(),
        'badge': BADGE_CLASSES.get(incident_type, BADGE_CLASSES['fight']),
        'title': _text(incident.title),
        'description': _text(incident.description),
        'location': format_location(incident),
        'timestamp': incident.timestamp,
        'status': _text(incident.status),
        'images': [img for img in incident.images if img.startswith(SAFE_IMAGE_PREFIXES)]
    }


def render_auth(user: Optional[User]) -> Dict:
    """View model for the auth area of the header"""
    if user is None:
        return {'authenticated': False, 'actions': ['login', 'register']}
    return {
        'authenticated': True,
        'greeting': f"Welcome, {_text(user.name) or _text(user.email)}",
        'actions': ['logout']
    }


class FeedRenderer:
    """State subscriber that keeps the current view model"""

    def __init__(self, state, incident_type: Optional[str] = None):
        self.state = state
        self.active_filter = IncidentValidator.normalize_type_filter(incident_type)
        self.auth: Dict = render_auth(None)
        self.feed: List[Dict] = []
        self._unsubscribe = state.subscribe(self.render)
        self.render(state.snapshot)

    def render(self, snapshot):
        self.auth = render_auth(snapshot.current_user)
        self.feed = [
            render_incident(incident)
            for incident in snapshot.incidents
            if self.active_filter is None or incident.type == self.active_filter
        ]
        logger.debug(f"Rendered feed: {len(self.feed)} of {len(snapshot.incidents)} incidents")

    def set_filter(self, incident_type: Optional[str]):
        self.active_filter = IncidentValidator.normalize_type_filter(incident_type)
        self.render(self.state.snapshot)

    def view(self) -> Dict:
        return {
            'auth': self.auth,
            'filter': self.active_filter or 'all',
            'incidents': self.feed
        }

    def close(self):
        self._unsubscribe()

"""
Incident Service
Fetches and creates incident reports and keeps the feed in AppState current
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from citizenwatch.config import ENDPOINTS
from citizenwatch.errors import ApiError, ValidationError
from citizenwatch.models import Incident
from citizenwatch.utils.secure_logging import redact_coordinates, safe_log_dict
from citizenwatch.utils.validators import IncidentValidator

logger = logging.getLogger(__name__)


class IncidentService:
    """Gateway between the incident endpoints and the application state"""

    def __init__(self, api, state, error_handler):
        self.api = api
        self.state = state
        self.error_handler = error_handler

    def get_incidents(self) -> List[Incident]:
        """
        Fetch the full incident collection.

        The fetched list replaces the feed in AppState; nothing is merged.

        Returns:
            list: Incidents in the order the backend returned them
        """
        try:
            data = self.api.get(ENDPOINTS['INCIDENTS'], bearer=True)
            if data is None:
                data = []
            if not isinstance(data, list):
                raise ApiError('Unexpected incident list payload')

            incidents = [Incident.from_dict(item) for item in data]
            self.state.set_state(incidents=incidents)

            logger.info(f"Incidents: Received {len(incidents)} incidents")
            return incidents
        except Exception as e:
            self.error_handler.handle(e)
            raise

    def create_incident(self, incident_data: Dict) -> Incident:
        """
        Post a new incident and put it at the front of the feed.

        Args:
            incident_data: Incident fields in wire format

        Returns:
            Incident: The record the backend created
        """
        try:
            created = self.api.post(ENDPOINTS['INCIDENTS'], incident_data, bearer=True)
            if not isinstance(created, dict):
                raise ApiError('Unexpected incident payload')

            incident = Incident.from_dict(created)
            self.state.set_state(incidents=(incident,) + self.state.incidents)

            if incident.has_coordinates:
                lat, lon = redact_coordinates(*incident.location)
                logger.info(f"Incident {incident.id} created ({incident.type}) near {lat}, {lon}")
            else:
                logger.info(f"Incident {incident.id} created ({incident.type})")
            return incident
        except Exception as e:
            self.error_handler.handle(e)
            raise

    def submit_report(self, form: Dict) -> Incident:
        """
        Validate a report form and create the incident.

        Stamps the report time (UTC) and the initial "active" status. A
        latitude/longitude pair in the form becomes the incident location's
        coordinates; the free-text location is used otherwise.

        Raises:
            ValidationError: With a field->message mapping for an invalid form
        """
        try:
            if not isinstance(form, dict):
                raise ValidationError('Please check the form for errors',
                                      errors={'form': 'Report must be a set of form fields'})
            is_valid, errors = IncidentValidator.validate_form(form)
            if not is_valid:
                raise ValidationError('Please check the form for errors', errors=errors)
        except ValidationError as e:
            self.error_handler.handle(e)
            raise

        location = form['location']
        if form.get('latitude') not in (None, '') and form.get('longitude') not in (None, ''):
            location = {'latitude': float(form['latitude']), 'longitude': float(form['longitude'])}
        elif isinstance(location, str):
            location = location.strip()

        report = {
            'type': form['type'].strip().lower(),
            'title': str(form['title']).strip(),
            'description': str(form['description']).strip(),
            'location': location,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'status': 'active',
            'images': list(form.get('images') or [])
        }
        logger.debug(f"Submitting report: {safe_log_dict(report)}")
        return self.create_incident(report)

    def filter_incidents(self, incident_type: Optional[str] = None) -> List[Incident]:
        """
        Current feed restricted to one incident type.

        Args:
            incident_type: Type or filter label; None/"all" returns everything

        Returns:
            list: Matching incidents, feed order preserved
        """
        wanted = IncidentValidator.normalize_type_filter(incident_type)
        if wanted is None:
            return list(self.state.incidents)
        return [incident for incident in self.state.incidents if incident.type == wanted]

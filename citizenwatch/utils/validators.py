"""
Validation utilities for incident report forms, coordinates and credentials.

Validators return plain values (bools, tuples, field->message dicts) and never
raise; callers decide whether a failure becomes a ValidationError.
"""
import re
from typing import Any, Dict, Tuple


class CoordinateValidator:
    """Validator for geographic coordinates."""

    @staticmethod
    def validate_coordinates(lat: float, lon: float) -> bool:
        """
        Validate latitude and longitude ranges.

        Examples:
            >>> CoordinateValidator.validate_coordinates(40.7128, -74.0060)
            True
            >>> CoordinateValidator.validate_coordinates(91, 0)
            False
        """
        try:
            latitude = float(lat)
            longitude = float(lon)
            return -90 <= latitude <= 90 and -180 <= longitude <= 180
        except (TypeError, ValueError):
            return False


class IncidentValidator:
    """Validator for incident types, statuses and the report form."""

    VALID_TYPES = ['accident', 'fight']

    VALID_STATUSES = ['active', 'resolved']

    # Filter labels that mean "no filter"
    ALL_LABELS = ['', 'all', 'all incidents']

    REQUIRED_FIELDS = {
        'type': 'Incident type is required',
        'title': 'Title is required',
        'description': 'Description is required',
        'location': 'Location is required'
    }

    @staticmethod
    def validate_incident_type(incident_type: str) -> bool:
        """
        Examples:
            >>> IncidentValidator.validate_incident_type('Accident')
            True
            >>> IncidentValidator.validate_incident_type('flood')
            False
        """
        if not incident_type or not isinstance(incident_type, str):
            return False

        return incident_type.lower() in IncidentValidator.VALID_TYPES

    @staticmethod
    def validate_status(status: str) -> bool:
        if not status or not isinstance(status, str):
            return False

        return status.lower() in IncidentValidator.VALID_STATUSES

    @staticmethod
    def normalize_type_filter(label: Any):
        """
        Map a feed filter label to an incident type.

        Returns None for "show everything" labels. Plural button labels
        ("Accidents", "Fights") collapse to their singular type.

        Examples:
            >>> IncidentValidator.normalize_type_filter('All Incidents') is None
            True
            >>> IncidentValidator.normalize_type_filter('Accidents')
            'accident'
        """
        if label is None:
            return None

        value = str(label).strip().lower()
        if value in IncidentValidator.ALL_LABELS:
            return None
        if value not in IncidentValidator.VALID_TYPES and value.endswith('s'):
            value = value[:-1]
        return value

    @staticmethod
    def validate_form(form: Dict) -> Tuple[bool, Dict[str, str]]:
        """
        Validate a submitted incident report form.

        Checks:
        - Required fields (type, title, description, location)
        - Incident type validity
        - Optional latitude/longitude pair ranges
        - Optional status and images shape

        Args:
            form: Raw form values

        Returns:
            Tuple of (is_valid, errors) where errors maps field name to message

        Examples:
            >>> IncidentValidator.validate_form({'type': 'accident', 'title': 'Crash',
            ...     'description': 'Two cars', 'location': 'Main St'})
            (True, {})
            >>> IncidentValidator.validate_form({'type': 'accident'})[1]['title']
            'Title is required'
        """
        errors = {}

        for field, message in IncidentValidator.REQUIRED_FIELDS.items():
            value = form.get(field)
            if isinstance(value, str):
                value = value.strip()
            if not value:
                errors[field] = message

        if 'type' not in errors and not IncidentValidator.validate_incident_type(form['type']):
            valid_types_str = ', '.join(IncidentValidator.VALID_TYPES)
            errors['type'] = f'Incident type must be one of: {valid_types_str}'

        lat = form.get('latitude')
        lon = form.get('longitude')
        if lat not in (None, '') or lon not in (None, ''):
            if not CoordinateValidator.validate_coordinates(lat, lon):
                errors['location'] = 'Location coordinates are out of range'

        if form.get('status') and not IncidentValidator.validate_status(form['status']):
            valid_statuses_str = ', '.join(IncidentValidator.VALID_STATUSES)
            errors['status'] = f'Status must be one of: {valid_statuses_str}'

        images = form.get('images')
        if images is not None:
            if not isinstance(images, (list, tuple)) or not all(isinstance(img, str) for img in images):
                errors['images'] = 'Images must be a list of encoded image strings'

        return len(errors) == 0, errors


class CredentialValidator:
    """Validator for login and registration input."""

    EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    @staticmethod
    def validate_email(email: str) -> Tuple[bool, str]:
        """
        Validate email format

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not email or not re.match(CredentialValidator.EMAIL_PATTERN, email):
            return False, "Invalid email format"

        # RFC 5321
        if len(email) > 254:
            return False, "Email address is too long"

        return True, "Email is valid"

    @staticmethod
    def validate_registration(email: str, password: str, name: str) -> Tuple[bool, Dict[str, str]]:
        """
        Validate registration fields.

        Returns:
            Tuple of (is_valid, errors) keyed by form field name
        """
        errors = {}

        email_valid, email_error = CredentialValidator.validate_email(email or '')
        if not email_valid:
            errors['email'] = email_error
        if not password:
            errors['password'] = 'Password is required'
        if not name or not name.strip():
            errors['name'] = 'Name is required'

        return len(errors) == 0, errors

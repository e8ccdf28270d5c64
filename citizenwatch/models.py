"""
Data model for users and incident reports.

Both types are frozen: state snapshots hand them to arbitrary subscriber code,
so nobody gets to edit an incident in place.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

Coordinates = Tuple[float, float]
Location = Union[str, Coordinates]


@dataclass(frozen=True)
class User:
    """
    Authenticated user as returned by the backend.

    Attributes:
        id: Backend user identifier
        email: Login email address
        name: Display name
        role: Account role ("citizen" for regular reporters)
    """

    id: Any
    email: str
    name: str = ''
    role: str = 'citizen'

    @classmethod
    def from_dict(cls, data: Dict) -> 'User':
        return cls(
            id=data.get('id'),
            email=data.get('email', ''),
            name=data.get('name') or data.get('display_name') or '',
            role=data.get('role') or 'citizen'
        )

    def to_dict(self) -> Dict:
        return {'id': self.id, 'email': self.email, 'name': self.name, 'role': self.role}


def parse_location(value: Any) -> Optional[Location]:
    """
    Normalize a wire location to free text or a (latitude, longitude) pair.

    Accepts a string, a two-item list/tuple, or a mapping with
    latitude/longitude (or lat/lon) keys. Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        lat = value.get('latitude', value.get('lat'))
        lon = value.get('longitude', value.get('lon'))
        if lat is None or lon is None:
            return None
        return (float(lat), float(lon))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return None


@dataclass(frozen=True)
class Incident:
    """
    A citizen incident report.

    Attributes:
        id: Backend identifier
        type: Incident type ("accident", "fight")
        title: Short headline
        description: Free-text details
        location: Free text, or a (latitude, longitude) pair
        timestamp: ISO-8601 report time
        status: "active" or "resolved"
        images: Ordered image payloads (data URLs or https URLs)
    """

    id: Any
    type: str
    title: str
    description: str = ''
    location: Optional[Location] = None
    timestamp: Optional[str] = None
    status: str = 'active'
    images: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_coordinates(self) -> bool:
        return isinstance(self.location, tuple)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Incident':
        location = parse_location(data.get('location'))
        if not location and data.get('latitude') is not None and data.get('longitude') is not None:
            location = (float(data['latitude']), float(data['longitude']))

        return cls(
            id=data.get('id'),
            type=data.get('type', ''),
            title=data.get('title', ''),
            description=data.get('description', ''),
            location=location,
            timestamp=data.get('timestamp'),
            status=data.get('status') or 'active',
            images=tuple(data.get('images') or ())
        )

    def to_dict(self) -> Dict:
        location = self.location
        if self.has_coordinates:
            location = {'latitude': self.location[0], 'longitude': self.location[1]}

        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'description': self.description,
            'location': location,
            'timestamp': self.timestamp,
            'status': self.status,
            'images': list(self.images)
        }

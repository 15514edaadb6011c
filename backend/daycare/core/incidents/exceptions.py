class IncidentError(Exception):
    """Base class for incident lifecycle errors."""


class UnknownTemplateError(IncidentError):
    def __init__(self, key: str):
        super().__init__(f"Unknown incident template '{key}'")
        self.key = key


class IncidentStateError(IncidentError):
    """The requested operation is not allowed in the incident's current status."""

    def __init__(self, status: str, message: str):
        super().__init__(message)
        self.status = status


class IncidentClosureError(IncidentError):
    """Closing was attempted without a guardian signature on record."""

    def __init__(self, incident_id):
        super().__init__("No se puede cerrar el incidente sin firma del padre/tutor")
        self.incident_id = incident_id


class IncidentReferenceError(IncidentError):
    """A referenced child, classroom or staff member is not part of the incident's organization."""

    def __init__(self, field: str, value):
        super().__init__(f"{field} {value} does not belong to this organization")
        self.field = field
        self.value = value

"""
Error taxonomy shared by the services and the API layer
"""


class DispenserError(Exception):
    """Base error; carries the HTTP status and extra payload for the response"""
    status_code = 500

    def __init__(self, message, **payload):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self):
        return {'status': 'error', 'message': self.message, **self.payload}


class ValidationError(DispenserError):
    """Missing or malformed field, bad enum value, unparseable timestamp"""
    status_code = 400


class NotFoundError(DispenserError):
    status_code = 404


class ConflictError(DispenserError):
    """Duplicate automation or concurrent modification"""
    status_code = 409

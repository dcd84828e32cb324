"""
Error taxonomy shared by the services and the HTTP layer.
"""

from typing import Any, Dict, Optional


class IntakeError(Exception):
    """Base class for errors surfaced to callers"""

    code = 'error'
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {'code': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(IntakeError):
    """Bad input shape or values"""

    code = 'validation_error'
    status_code = 400
    default_message = 'Validation error'


class NotFound(IntakeError):
    """Entity absent or outside the caller's tenant scope"""

    code = 'not_found'
    status_code = 404
    default_message = 'Not found'


class Unauthorized(IntakeError):
    """Role insufficient for the operation"""

    code = 'unauthorized'
    status_code = 403
    default_message = 'Unauthorized'


class InvalidTransition(IntakeError):
    """Order status machine violation"""

    code = 'invalid_transition'
    status_code = 409
    default_message = 'Invalid status transition'


class UpstreamDegraded(IntakeError):
    """
    A side-effect integration failed.

    Raised by adapters and caught by the order engine, which keeps the primary
    change and reports the degradation on its result.
    """

    code = 'upstream_degraded'
    status_code = 502
    default_message = 'Upstream integration failed'

"""
Error taxonomy for the donation workflow.

Lifecycle errors are raised by the controller and mapped to HTTP statuses by
the routers. Collaborator errors are raised by the external collaborators and
are either degraded, downgraded to a warning, or escalated by the controller.
"""


class DonationError(Exception):
    """Base class for all workflow errors."""


class ValidationError(DonationError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFound(DonationError):
    pass


class InvalidTransition(DonationError):
    def __init__(self, donation_id: str, current: str, action: str):
        super().__init__(f"Cannot {action} donation {donation_id} in status '{current}'")
        self.donation_id = donation_id
        self.current = current
        self.action = action


class RenderError(DonationError):
    """Poster rendering failed. Retryable: the record is left untouched."""


class GenerationError(DonationError):
    pass


class DeliveryError(DonationError):
    pass


class StorageError(DonationError):
    pass

"""
Error taxonomy for the scoring service.

Every error carries the HTTP status the API layer renders it with. Row- and
lead-level errors (MissingFieldsError, InvalidEmailError, ExternalServiceError,
LeadAlreadyClaimedError) are recovered inside the pipeline and only show up as
structured detail; the rest abort the request that raised them.
"""


class LeadScoringError(Exception):
    """Base class for all service errors."""
    status_code = 500

    def __init__(self, message=None, status_code=None):
        self.message = message or self.__class__.__doc__ or 'Internal Server Error'
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ── Validation ───────────────────────────────────────────────────────────────

class ValidationError(LeadScoringError):
    """Invalid input."""
    status_code = 400

    def __init__(self, message=None, details=None, status_code=None):
        self.details = details or []
        super().__init__(message, status_code)


class MissingFieldsError(ValidationError):
    """A CSV row lacks one or more required fields."""

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class InvalidEmailError(ValidationError):
    """A CSV row carries a malformed email address."""

    def __init__(self, email=''):
        self.email = email
        super().__init__('Invalid email format')


class UnsupportedMediaTypeError(ValidationError):
    """Only CSV files are allowed."""
    status_code = 415


class PayloadTooLargeError(ValidationError):
    """File size too large."""
    status_code = 413


# ── Lookup ───────────────────────────────────────────────────────────────────

class NotFoundError(LeadScoringError):
    """Resource not found."""
    status_code = 404


class OfferNotFoundError(NotFoundError):
    """Offer not found."""

    def __init__(self, offer_id=None):
        self.offer_id = offer_id
        super().__init__('Offer not found')


class LeadNotFoundError(NotFoundError):
    """Lead not found."""

    def __init__(self, lead_id=None):
        self.lead_id = lead_id
        super().__init__('Lead not found')


# ── Conflict ─────────────────────────────────────────────────────────────────

class OfferInUseError(LeadScoringError):
    """Offer is referenced by scored leads."""
    status_code = 409

    def __init__(self, offer_id=None, lead_count=0):
        self.offer_id = offer_id
        self.lead_count = lead_count
        super().__init__(f'Offer is referenced by {lead_count} scored leads and cannot be deleted')


# ── Pipeline / infrastructure ────────────────────────────────────────────────

class ExternalServiceError(LeadScoringError):
    """The classifier oracle failed or returned an unusable answer."""
    status_code = 502


class StorageTransactionError(LeadScoringError):
    """A database transaction could not be committed."""
    status_code = 500


class StreamParseError(LeadScoringError):
    """Error parsing CSV file."""
    status_code = 400


class LeadAlreadyClaimedError(LeadScoringError):
    """Another batch already processed this lead."""
    status_code = 409

    def __init__(self, lead_id=None):
        self.lead_id = lead_id
        super().__init__(f'Lead {lead_id} was already processed by another batch')

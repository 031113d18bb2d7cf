"""
Typed Exception Hierarchy for the Lease Kernel.

Every error raised by the engine has a TYPED class (catch by type, not by
message), a ``code`` class attribute (machine-readable, API-safe) and carries
its context as attributes rather than only inside the message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LeaseKernelError (base)
    |
    +-- LeaseValidationError
    |   +-- InvalidSigningAuthorityEmailError
    |   +-- InvalidSigningAuthorityPhoneError
    |   +-- MissingCustomFieldError
    |
    +-- SubCollectionError
    |   +-- SubCollectionIndexError
    |   +-- ParkingRowRequiredError
    |
    +-- LeaseMappingError
    |   +-- MalformedLeaseRecordError
    |
    +-- LeaseSessionError
    |   +-- LeaseSubmissionError
    |   +-- SessionClosedError
    |
    +-- LeaseConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                             | When Raised
----------------|----------------------------------|------------------------------------
Validation      | INVALID_SIGNING_AUTHORITY_EMAIL  | Non-empty email fails the pattern
                | INVALID_SIGNING_AUTHORITY_PHONE  | Non-empty phone is not 10 digits
                | MISSING_CUSTOM_FIELD             | Required custom field left empty
----------------|----------------------------------|------------------------------------
Sub-collection  | SUB_COLLECTION_INDEX             | update/remove outside the list
                | PARKING_ROW_REQUIRED             | Removing the last parking row
----------------|----------------------------------|------------------------------------
Mapping         | MALFORMED_LEASE_RECORD           | Wire record is not a mapping
----------------|----------------------------------|------------------------------------
Session         | LEASE_SUBMISSION_FAILED          | Transport rejected / unreachable
                | SESSION_CLOSED                   | Operation after successful submit
----------------|----------------------------------|------------------------------------
Config          | LEASE_CONFIG_ERROR               | Invalid configuration values

===============================================================================
HANDLING PATTERNS
===============================================================================

Input-shape problems (text typed into a numeric field) are NOT errors: the
value is coerced to zero and the user sees the zeroed derived figure.

    try:
        session.submit(transport)
    except LeaseValidationError as e:
        show_form_error(e.code, e.field)        # nothing was sent
    except LeaseSubmissionError as e:
        show_banner(e.user_message)             # draft kept, user may retry
"""


class LeaseKernelError(Exception):
    """
    Base exception for all lease kernel errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "LEASE_KERNEL_ERROR"


# Validation exceptions


class LeaseValidationError(LeaseKernelError):
    """Client-side check failed; submission aborted before any network call."""

    code: str = "LEASE_VALIDATION_ERROR"
    title: str = "Invalid Lease"

    def __init__(self, field: str, message: str):
        self.field = field
        self.user_message = message
        super().__init__(message)


class InvalidSigningAuthorityEmailError(LeaseValidationError):
    """Signing-authority email is non-empty and malformed."""

    code: str = "INVALID_SIGNING_AUTHORITY_EMAIL"
    title: str = "Invalid Email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            "signing_authority.email",
            "Please enter a valid email for the signing authority.",
        )


class InvalidSigningAuthorityPhoneError(LeaseValidationError):
    """Signing-authority phone is non-empty and not exactly ten digits."""

    code: str = "INVALID_SIGNING_AUTHORITY_PHONE"
    title: str = "Invalid Phone"

    def __init__(self, phone: str, digits: int = 10):
        self.phone = phone
        self.digits = digits
        super().__init__(
            "signing_authority.phone",
            f"Please enter a valid {digits}-digit phone number for the "
            f"signing authority.",
        )


class MissingCustomFieldError(LeaseValidationError):
    """A required, active custom field has no value."""

    code: str = "MISSING_CUSTOM_FIELD"
    title: str = "Missing Field"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(
            f"custom_fields.{field_name}",
            f"{field_name} is required.",
        )


# Sub-collection exceptions


class SubCollectionError(LeaseKernelError):
    """Base exception for sub-collection tracking errors."""

    code: str = "SUB_COLLECTION_ERROR"


class SubCollectionIndexError(SubCollectionError):
    """Index does not address an item in the collection."""

    code: str = "SUB_COLLECTION_INDEX"

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(
            f"Index {index} out of range for collection of {length} item(s)"
        )


class ParkingRowRequiredError(SubCollectionError):
    """At least one parking row must remain on the form."""

    code: str = "PARKING_ROW_REQUIRED"

    def __init__(self):
        super().__init__("At least one parking row must remain")


# Mapping exceptions


class LeaseMappingError(LeaseKernelError):
    """Base exception for wire <-> draft mapping errors."""

    code: str = "LEASE_MAPPING_ERROR"


class MalformedLeaseRecordError(LeaseMappingError):
    """The wire record is not a mapping and cannot be loaded."""

    code: str = "MALFORMED_LEASE_RECORD"

    def __init__(self, received_type: str):
        self.received_type = received_type
        super().__init__(
            f"Lease record must be a mapping, received {received_type}"
        )


# Session exceptions


class LeaseSessionError(LeaseKernelError):
    """Base exception for edit-session errors."""

    code: str = "LEASE_SESSION_ERROR"


class LeaseSubmissionError(LeaseSessionError):
    """
    The remote lease store rejected the payload or could not be reached.

    Not retried. The session's draft is left intact for correction.
    """

    code: str = "LEASE_SUBMISSION_FAILED"

    def __init__(self, mode: str, reason: str, lease_id: int | str | None = None):
        self.mode = mode
        self.reason = reason
        self.lease_id = lease_id
        self.user_message = reason or f"Failed to {mode} rental"
        super().__init__(f"Lease {mode} failed: {self.user_message}")


class SessionClosedError(LeaseSessionError):
    """The session already submitted successfully; its draft is discarded."""

    code: str = "SESSION_CLOSED"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Edit session {session_id} is closed")


# Configuration exceptions


class LeaseConfigError(LeaseKernelError):
    """Configuration values are out of range or inconsistent."""

    code: str = "LEASE_CONFIG_ERROR"

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"{setting}: {message}")

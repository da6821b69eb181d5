"""
Typed Exception Hierarchy for Statement Import.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from StatementImportError:

    StatementImportError (base)
    |
    +-- NotFoundError
    |   +-- UploadNotFoundError
    |   +-- TransactionNotFoundError
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |   +-- InvalidTransactionStateError
    |
    +-- UploadValidationError
    |   +-- InvalidUserError
    |   +-- InvalidFileNameError
    |   +-- UnsupportedFileFormatError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- DeliveryError
        +-- EventDeliveryFailedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | UPLOAD_NOT_FOUND            | Upload missing or owned by another user
                | TRANSACTION_NOT_FOUND       | Transaction id not part of the upload
----------------|-----------------------------|-----------------------------------------
Transition      | INVALID_TRANSITION          | Trigger illegal for the current status
                | INVALID_TRANSACTION_STATE   | Category edit outside PendingReview
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_USER                | Upload created without a user id
                | INVALID_FILE_NAME           | Blank file name
                | UNSUPPORTED_FILE_FORMAT     | Extension not accepted
----------------|-----------------------------|-----------------------------------------
Concurrency     | CONCURRENT_MODIFICATION     | Persisted version advanced since load
----------------|-----------------------------|-----------------------------------------
Delivery        | EVENT_DELIVERY_FAILED       | Publish failed after the commit

===============================================================================
HANDLING PATTERNS
===============================================================================

1. TRANSITION ERRORS ARE CLIENT ERRORS (never retried automatically):

    try:
        coordinator.cancel(upload_id, user_id)
    except InvalidTransitionError as e:
        # Already terminal -- treat as a no-op
        log.info("cancel ignored", extra={"status": e.current_status})

2. CONCURRENCY ERRORS ARE RETRIABLE (reload and run again):

    retry_on_conflict(
        lambda: coordinator.set_confirmed_category(upload_id, user_id, txn_id, cat_id),
        attempts=3,
    )

3. DELIVERY ERRORS DO NOT ROLL BACK:

    except EventDeliveryFailedError as e:
        # Upload is Confirmed; alert and redeliver from the outbox
        alert(e.statement_upload_id)
"""

from __future__ import annotations


class StatementImportError(Exception):
    """
    Base exception for all statement import errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STATEMENT_IMPORT_ERROR"


# Not-found exceptions


class NotFoundError(StatementImportError):
    """Base exception for missing or inaccessible entities."""

    code: str = "NOT_FOUND"


class UploadNotFoundError(NotFoundError):
    """Upload does not exist, or is not owned by the requesting user.

    Both cases share one error so callers cannot probe for other users'
    upload ids.
    """

    code: str = "UPLOAD_NOT_FOUND"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__(f"Statement upload not found: {upload_id}")


class TransactionNotFoundError(NotFoundError):
    """Parsed transaction id is not part of the upload."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, upload_id: str, transaction_id: str):
        self.upload_id = upload_id
        self.transaction_id = transaction_id
        super().__init__(
            f"Parsed transaction {transaction_id} not found in upload {upload_id}"
        )


# Transition exceptions


class TransitionError(StatementImportError):
    """Base exception for lifecycle rule violations."""

    code: str = "TRANSITION_ERROR"


class InvalidTransitionError(TransitionError):
    """Requested trigger is not legal from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, upload_id: str, current_status: str, trigger: str):
        self.upload_id = upload_id
        self.current_status = current_status
        self.trigger = trigger
        super().__init__(
            f"Invalid transition for upload {upload_id}: "
            f"cannot {trigger} from {current_status}"
        )


class InvalidTransactionStateError(TransitionError):
    """Transaction edit attempted while the upload is not in review."""

    code: str = "INVALID_TRANSACTION_STATE"

    def __init__(self, upload_id: str, current_status: str):
        self.upload_id = upload_id
        self.current_status = current_status
        super().__init__(
            f"Transactions of upload {upload_id} can only be edited in "
            f"pending_review (current status: {current_status})"
        )


# Upload creation exceptions


class UploadValidationError(StatementImportError):
    """Base exception for invalid upload creation input."""

    code: str = "UPLOAD_VALIDATION_ERROR"


class InvalidUserError(UploadValidationError):
    """Upload created without an owning user."""

    code: str = "INVALID_USER"

    def __init__(self):
        super().__init__("user_id is required")


class InvalidFileNameError(UploadValidationError):
    """Upload created with a blank file name."""

    code: str = "INVALID_FILE_NAME"

    def __init__(self, file_name: str | None):
        self.file_name = file_name
        super().__init__("File name is required")


class UnsupportedFileFormatError(UploadValidationError):
    """File extension is not one of the accepted statement formats."""

    code: str = "UNSUPPORTED_FILE_FORMAT"

    def __init__(self, file_name: str, accepted: tuple[str, ...]):
        self.file_name = file_name
        self.accepted = accepted
        super().__init__(
            f"Unsupported statement file {file_name!r}; "
            f"accepted: {', '.join(accepted)}"
        )


# Concurrency exceptions


class ConcurrencyError(StatementImportError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Optimistic version check failed on save."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, upload_id: str, expected_version: int):
        self.upload_id = upload_id
        self.expected_version = expected_version
        super().__init__(
            f"Statement upload {upload_id} was modified by another request "
            f"(expected version {expected_version}); reload and retry"
        )


# Delivery exceptions


class DeliveryError(StatementImportError):
    """Base exception for outbound event delivery errors."""

    code: str = "DELIVERY_ERROR"


class EventDeliveryFailedError(DeliveryError):
    """
    Confirmation event could not be published after the commit.

    The upload stays Confirmed. Redelivery is keyed by statement_upload_id.
    """

    code: str = "EVENT_DELIVERY_FAILED"

    def __init__(self, statement_upload_id: str, reason: str):
        self.statement_upload_id = statement_upload_id
        self.reason = reason
        super().__init__(
            f"Confirmation event for upload {statement_upload_id} was not "
            f"delivered: {reason}"
        )

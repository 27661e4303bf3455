"""
errors.py — Typed workflow failures

Every service operation either returns its result or raises one of these.
The API boundary (main.py) turns them into the shared ErrorResponse shape,
so no workflow failure reaches a caller as an unstructured 500.

Called by: all services, main.py (exception handler)
Depends on: nothing
"""


class WorkflowError(Exception):
    """Base class. `code` is the stable machine-readable failure name."""

    code = "WorkflowError"
    status_code = 400

    def __init__(self, message: str = "", **detail):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.detail = detail


class ValidationError(WorkflowError):
    """Malformed input: empty items, non-positive quantity/price, bad dates."""

    code = "ValidationError"
    status_code = 422


class NoItemsSelected(ValidationError):
    code = "NoItemsSelected"


class NotFound(WorkflowError):
    """Referenced entity is absent or outside the actor's organization."""

    code = "NotFound"
    status_code = 404


class InvalidTransition(WorkflowError):
    """Action is illegal from the current status or for the actor's role."""

    code = "InvalidTransition"
    status_code = 409


class RequestNotAccepted(InvalidTransition):
    code = "RequestNotAccepted"


class AlreadyResolved(WorkflowError):
    """A one-shot operation was repeated."""

    code = "AlreadyResolved"
    status_code = 409


class DuplicateQuote(AlreadyResolved):
    code = "DuplicateQuote"


class DuplicateInvoice(AlreadyResolved):
    code = "DuplicateInvoice"


class OrganizationMismatch(WorkflowError):
    code = "OrganizationMismatch"
    status_code = 403


class OrganizationMissing(WorkflowError):
    code = "OrganizationMissing"
    status_code = 422


class SupplierNotVerified(WorkflowError):
    code = "SupplierNotVerified"
    status_code = 422


class ConcurrentModification(WorkflowError):
    """The row changed between read and write. Retry against fresh state."""

    code = "ConcurrentModification"
    status_code = 409


class PersistenceFailure(WorkflowError):
    code = "PersistenceFailure"
    status_code = 503


class SplitFailed(WorkflowError):
    """Child creation failed part-way; `created` lists children already written."""

    code = "SplitFailed"
    status_code = 500

    def __init__(self, message: str = "", created: list[str] | None = None, **detail):
        super().__init__(message, created=list(created or []), **detail)
        self.created = list(created or [])

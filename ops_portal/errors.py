"""
Portal Error Taxonomy
=============================================================================
Every failure the portal can surface to a user is a PortalError subclass.
Each carries a `message` safe to show to the person who clicked the button.

  AuthenticationFailure   bad credential, disallowed domain, no session.
                          The message never says whether the email exists.
  AuthorizationDenied     the principal's role may not do this. Nothing changed.
  ValidationFailure       malformed input, rejected before any store call.
    InvalidTransition     the action is not valid from the current status.
  EntityNotFound          unknown id (or an id hidden by visibility rules).
  StoreError              the data-access layer failed; nothing was written.
    StoreNotImplemented   this store does not offer the operation.
    StoreUnavailable      the store could not be reached / is throttling.
    StoreRejected         the store refused the operation.

The API layer (ops_portal/main.py) converts these into JSON responses in one
exception handler; nothing here knows about HTTP.
=============================================================================
"""


class PortalError(Exception):
    """Base class for all user-visible portal failures."""

    default_message = "The operation could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(PortalError):
    default_message = "Invalid credentials."


class AuthorizationDenied(PortalError):
    default_message = "You are not allowed to perform this action."


class ValidationFailure(PortalError):
    default_message = "The submitted data is invalid."


class InvalidTransition(ValidationFailure):
    default_message = "This action is not available for the request's current status."


class EntityNotFound(PortalError):
    default_message = "The requested record does not exist."


class StoreError(PortalError):
    default_message = "The record store failed to complete the operation."


class StoreNotImplemented(StoreError):
    default_message = "This operation is not available on the configured record store."


class StoreUnavailable(StoreError):
    default_message = "The record store is currently unavailable. Please try again."


class StoreRejected(StoreError):
    default_message = "The record store rejected the operation."

### Description ###
# Noxera Plus - Church Operations Platform API
# - Error Taxonomy -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Error Taxonomy

Exceptions raised by the authorization core and the management services.
Each carries the HTTP status it is rendered with by the exception handler
registered in noxera.main. Authorization failures are never retried and
handlers must let them propagate.
"""


class NoxeraError(Exception):
    """Base class for errors rendered as API error responses"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(NoxeraError):
    """
    Missing, invalid or expired credential.

    The message is for logs only; clients always receive a generic 401 so
    that "no such user" and "bad token" cannot be told apart.
    """

    status_code = 401
    public_message = "Invalid or expired credentials"


class ForbiddenError(NoxeraError):
    """Identity established, but the action or scope is not allowed"""

    status_code = 403


class AccountNotLinkedError(ForbiddenError):
    """Verified identity has no tenant user record"""

    def __init__(
        self,
        message: str = "Your account is not linked to a church workspace. Contact support or onboarding admin.",
    ):
        super().__init__(message)


class AccountSuspendedError(ForbiddenError):
    """Linked tenant user is suspended"""

    def __init__(
        self,
        message: str = "Your account has been suspended. Contact your church administrator.",
    ):
        super().__init__(message)


class NoBranchAccessError(ForbiddenError):
    """Branch-restricted user without any usable branch grant"""

    def __init__(
        self,
        message: str = "Your account has no branch access assigned. Contact your church administrator.",
    ):
        super().__init__(message)


class BadRequestError(NoxeraError):
    """Invalid input or a request that would break a tenant invariant"""

    status_code = 400


class NotFoundError(NoxeraError):
    """Record does not exist within the caller's tenant"""

    status_code = 404

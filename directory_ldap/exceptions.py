"""
This module defines the exceptions that can be thrown by :py:mod:`directory_ldap`.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"


class DirectoryError(Exception):
    """
    Base class for all errors raised by :py:mod:`directory_ldap`.
    """


class ArgumentError(DirectoryError, ValueError):
    """
    Raised when a required argument is missing or blank. Always raised before
    any network call is attempted.
    """


class OrganizationNotFoundError(DirectoryError, LookupError):
    """
    Raised when a parent organization cannot be found by its DN.
    """
    def __init__(self, distinguished_name):
        super().__init__(
            "No organization with distinguished name '{}'".format(distinguished_name)
        )
        self.distinguished_name = distinguished_name


class SchemaNotFoundError(DirectoryError):
    """
    Raised when there is no mapping registered for an entity kind.
    """


class ConnectionError(DirectoryError):
    """
    Raised when there is an error with the LDAP connection itself, as opposed to
    a problem executing an operation (see :py:class:`DirectoryServerError`).
    """


class AuthenticationError(ConnectionError):
    """
    Raised when the server rejects the bind credentials.
    """


class DirectoryServerError(DirectoryError):
    """
    Raised when the directory server rejects an operation, i.e. an error that
    results from a bad request rather than a problem with the connection per-se.

    The result code, description and message are those sent by the server.
    """
    def __init__(self, message = '', result = None, description = None):
        super().__init__(message)
        self.message = message
        self.result = result
        self.description = description

    @classmethod
    def from_ldap3(cls, exc):
        """
        Builds an error from an ``ldap3`` operation result exception, keeping the
        server response untouched.
        """
        return cls(
            getattr(exc, 'message', None) or str(exc),
            getattr(exc, 'result', None),
            getattr(exc, 'description', None)
        )


class ObjectAlreadyExistsError(DirectoryServerError):
    """
    Raised when attempting to create an object that already exists.
    """


class NoSuchObjectError(DirectoryServerError):
    """
    Raised when an operation is attempted on a non-existent object.
    """


class PermissionDeniedError(DirectoryServerError):
    """
    Raised when the connection does not have permission to perform the requested
    operation.
    """


class SchemaViolationError(DirectoryServerError):
    """
    Raised when a schema violation occurs.
    """


class ConstraintViolationError(DirectoryServerError):
    """
    Raised when the server rejects a value, e.g. a password that does not meet
    the domain policy.
    """

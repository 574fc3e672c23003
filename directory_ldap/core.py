"""
This module provides a layer over `ldap3 <https://ldap3.readthedocs.org/>`_ that
is intended to be more intuitive and easier to mock.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import logging, contextlib

import ldap3
from ldap3.utils.ciDict import CaseInsensitiveDict

from . import exceptions


_log = logging.getLogger(__name__)


def _decode(value):
    if isinstance(value, bytes):
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError:
            return value
    return value


def _normalise(attributes):
    """
    Converts an ``ldap3`` attribute dictionary into a case-insensitive dictionary
    that maps attribute names to a **list of values**, even when there is only
    one value.
    """
    normalised = CaseInsensitiveDict()
    for name, values in attributes.items():
        if not isinstance(values, (list, tuple)):
            values = [values]
        normalised[name] = [_decode(v) for v in values]
    return normalised


def _is_empty(value):
    """
    Returns True if a value is considered empty, False otherwise.
    """
    if isinstance(value, (list, tuple, set, frozenset)):
        return not bool(value)
    elif value is None:
        return True
    elif value == '':
        return True
    return False


class Connection:
    """
    Represents an authenticated LDAP connection.

    A connection is used for a single operation. Connections should be used in
    a `with` statement to ensure that the connection is closed when it is
    finished with::

        with Connection.create(settings) as conn:
            # ... do something with conn ...
    """
    #: Scope to search entire subtree
    SEARCH_SCOPE_SUBTREE = ldap3.SUBTREE
    #: Scope to search just a single level
    SEARCH_SCOPE_SINGLE_LEVEL = ldap3.LEVEL
    #: Scope to search for a single entity (allows searching for a DN)
    SEARCH_SCOPE_ENTITY = ldap3.BASE

    #: Response type for search entries; all other response types are skipped
    RESPONSE_TYPE_ENTRY = 'searchResEntry'

    def __init__(self, conn):
        self._conn = conn

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Just attempt to close the connection, but don't supress or replace
        # exceptions from inside the with statement
        if exc_type is None:
            self.close()
        else:
            try:
                self.close()
            except exceptions.DirectoryError:
                _log.exception('Failed to close LDAP connection')
        return False

    @contextlib.contextmanager
    def _connection(self):
        """
        Context manager for the ldap3 connection that converts ldap3 exceptions
        to the appropriate exception from the ``exceptions`` module.
        """
        try:
            yield self._conn
        except ldap3.core.exceptions.LDAPEntryAlreadyExistsResult as e:
            raise exceptions.ObjectAlreadyExistsError.from_ldap3(e) from e
        except ldap3.core.exceptions.LDAPNoSuchObjectResult as e:
            raise exceptions.NoSuchObjectError.from_ldap3(e) from e
        except ldap3.core.exceptions.LDAPObjectClassViolationResult as e:
            raise exceptions.SchemaViolationError.from_ldap3(e) from e
        except ldap3.core.exceptions.LDAPConstraintViolationResult as e:
            raise exceptions.ConstraintViolationError.from_ldap3(e) from e
        except (ldap3.core.exceptions.LDAPInsufficientAccessRightsResult,
                ldap3.core.exceptions.LDAPStrongerAuthRequiredResult) as e:
            raise exceptions.PermissionDeniedError.from_ldap3(e) from e
        except ldap3.core.exceptions.LDAPOperationResult as e:
            raise exceptions.DirectoryServerError.from_ldap3(e) from e
        except ldap3.core.exceptions.LDAPException as e:
            raise exceptions.ConnectionError(str(e)) from e

    def search(self, base_dn, filter_str, attributes = ldap3.ALL_ATTRIBUTES,
                     scope = SEARCH_SCOPE_SUBTREE):
        """
        Perform an LDAP search to find entries that match the given LDAP filter
        string under the given base DN and scope.

        Returns an iterable of ``(dn, attributes)`` pairs, in the order the server
        returned them. The attribute dictionary is case-insensitive and maps
        attribute names to a **list of values** for that attribute, even when
        there is only one value. Messages that are not entries, e.g. referrals,
        are skipped.

        Args:
            base_dn: The base DN for the search.
            filter_str: The LDAP filter string for the search.
            attributes: The attributes to fetch for each entry (optional, defaults
                to all user attributes).
            scope: The search scope, one of :py:const:`SEARCH_SCOPE_SUBTREE`,
                :py:const:`SEARCH_SCOPE_SINGLE_LEVEL` or
                :py:const:`SEARCH_SCOPE_ENTITY` (optional, defaults to
                :py:const:`SEARCH_SCOPE_SUBTREE`).

        Returns:
            An iterable of ``(dn, attributes)`` pairs

        Raises:
            Any of the exceptions from :py:mod:`~.exceptions`.
        """
        _log.debug('Performing LDAP search (base_dn: {}, filter: {})'.format(base_dn, filter_str))
        with self._connection() as conn:
            try:
                conn.search(
                    search_base = base_dn,
                    search_filter = filter_str,
                    search_scope = scope,
                    attributes = attributes
                )
            except ldap3.core.exceptions.LDAPNoSuchObjectResult:
                # NoSuchObject means an empty search
                return
            for response in (conn.response or []):
                if response.get('type') != self.RESPONSE_TYPE_ENTRY:
                    continue
                yield response['dn'], _normalise(response.get('attributes') or {})

    def create_entry(self, dn, attributes):
        """
        Creates an entry at the given DN with the given attributes.

        Args:
            dn: The DN to create.
            attributes: The attributes to give the new entry.

        Returns:
            ``True`` on success (should raise on failure).

        Raises:
            Any of the exceptions from :py:mod:`~.exceptions`. Rejections from the
            server are raised as :py:class:`~.exceptions.DirectoryServerError` instances
            carrying the server's response.
        """
        _log.debug('Creating LDAP entry at dn {}'.format(dn))
        # Prepare the attributes for insertion by removing any keys with empty values
        attributes = { k : v for k, v in attributes.items() if not _is_empty(v) }
        with self._connection() as conn:
            conn.add(dn, attributes = attributes)
        return True

    def close(self):
        """
        Closes the connection.

        Returns:
            ``True`` on success (should raise on failure).

        Raises:
            Any of the exceptions from :py:mod:`~.exceptions`.
        """
        _log.debug('Closing LDAP connection')
        with self._connection() as conn:
            conn.unbind()
        return True

    @classmethod
    def create(cls, settings, user = None, password = None):
        """
        Creates a new LDAP connection with the given arguments.

        If no user is given, the service account from the settings is used.

        The bind depends on the transport: with ``use_ssl`` the bind happens over
        an LDAPS channel, with ``start_tls`` the plain connection is upgraded
        before binding, otherwise a simple bind is done in the clear.

        Args:
            settings: The :py:class:`~.config.DirectorySettings` to connect with.
            user: The user to bind as (optional, defaults to the service account).
            password: The password to bind with.

        Returns:
            A :py:class:`Connection`.

        Raises:
            :py:class:`~.exceptions.AuthenticationError` if the credentials are
            rejected, :py:class:`~.exceptions.ConnectionError` if the server
            cannot be reached.
        """
        if user is None:
            user, password = settings.bind_user, settings.bind_password
        server = settings.build_server()
        _log.debug('Opening LDAP connection to {} for {}'.format(server, user))
        conn = None
        try:
            conn = ldap3.Connection(
                server, user = user, password = password,
                auto_bind = ldap3.AUTO_BIND_NONE,
                receive_timeout = settings.receive_timeout,
                raise_exceptions = True
            )
            conn.open()
            if settings.start_tls:
                conn.start_tls()
            if not conn.bind():
                raise ldap3.core.exceptions.LDAPBindError('Bind rejected')
        except (ldap3.core.exceptions.LDAPBindError,
                ldap3.core.exceptions.LDAPInvalidCredentialsResult) as e:
            cls._release(conn)
            raise exceptions.AuthenticationError('Invalid user DN or password') from e
        except ldap3.core.exceptions.LDAPException as e:
            _log.debug('Failed to open connection to {} for {}'.format(server, user))
            cls._release(conn)
            raise exceptions.ConnectionError(
                'Could not connect to {}:{} - {}'.format(settings.host, settings.port, e)
            ) from e
        return cls(conn)

    @staticmethod
    def _release(conn):
        """
        Closes the socket of a connection that failed to open or bind.
        """
        if conn is None:
            return
        try:
            conn.unbind()
        except ldap3.core.exceptions.LDAPException:
            _log.exception('Failed to release LDAP connection')

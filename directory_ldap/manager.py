"""
This module defines the directory manager, the entry point for looking up,
creating and authenticating organizations and users.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import logging

from .core import Connection
from .entities import EntityKind, Organization
from .exceptions import OrganizationNotFoundError
from .notifiers import LoggingNotifier
from .query import Query
from .validators import check_not_blank, check_required


_log = logging.getLogger(__name__)


#: userAccountControl flags for a normal, enabled account
NORMAL_ACCOUNT = 512


def encode_password(password):
    """
    Encodes a password in the format expected by the ``unicodePwd`` attribute,
    i.e. surrounded by double quotes and encoded as UTF-16-LE.
    """
    password = check_required(password, 'password')
    return '"{}"'.format(password).encode('utf-16-le')


class DirectoryManager:
    """
    A directory manager is responsible for translating organization and user
    operations into LDAP operations.

    Every operation is independent and uses its own connection, so a manager
    can be shared between threads.

    :param settings: The :py:class:`~.config.DirectorySettings` to use
    :param notifier: Receives the errors handled by :py:meth:`authenticate`
                     (optional, defaults to a :py:class:`~.notifiers.LoggingNotifier`)
    :param connection_factory: Callable taking ``(settings, user, password)`` and
                               returning a :py:class:`~.core.Connection`
                               (optional, defaults to :py:meth:`.core.Connection.create`)
    """
    def __init__(self, settings, notifier = None, connection_factory = None):
        self._settings = settings
        self._notifier = notifier or LoggingNotifier()
        self._connection_factory = connection_factory or Connection.create

    @property
    def settings(self):
        return self._settings

    def connection(self, user = None, password = None):
        """
        Opens a new connection, bound as the service account unless other
        credentials are given.
        """
        return self._connection_factory(self._settings, user, password)

    def query(self, kind, conditions):
        """
        Creates a query for entities of the given kind under the search base.
        """
        return Query(
            self.connection,
            self._settings.search_base,
            conditions,
            kind
        )

    def _create(self, dn, attributes):
        with self.connection() as conn:
            return conn.create_entry(dn, attributes)

    def _schema_dn(self, name):
        return 'CN={},CN=Schema,CN=Configuration,{}'.format(name, self._settings.domain_dn)

    ############################################################################
    ## Organizations
    ############################################################################

    def get_organizations(self, name = None):
        """
        Returns the organizational units, optionally restricted to those with
        the given name.
        """
        return self.query(EntityKind.ORGANIZATION, {
            'name' : name,
            'objectClass' : 'organizationalUnit',
        }).all()

    def get_organization(self, distinguished_name):
        """
        Returns the organizational unit with the given DN, or ``None``.
        """
        distinguished_name = check_not_blank(distinguished_name, 'distinguished_name')
        return self.query(EntityKind.ORGANIZATION, {
            'distinguishedName' : distinguished_name,
            'objectClass' : 'organizationalUnit',
        }).one()

    def add_sub_organization(self, name, parent):
        """
        Creates an organizational unit under the given parent.

        :param name: The name of the new organization
        :param parent: The parent :py:class:`~.entities.Organization`, or its DN
        :returns: The DN of the new organization
        """
        name = check_not_blank(name, 'name')
        if not isinstance(parent, Organization):
            parent_dn = check_not_blank(parent, 'parent')
            parent = self.get_organization(parent_dn)
            if parent is None:
                raise OrganizationNotFoundError(parent_dn)
        dn = parent.child_dn(name)
        _log.info('Adding organization {}'.format(dn))
        self._create(dn, {
            'objectCategory' : self._schema_dn('Organizational-Unit'),
            'objectClass' : ['top', 'organizationalUnit'],
            'name' : name,
        })
        return dn

    ############################################################################
    ## Users
    ############################################################################

    def get_users(self, name = None, display_name = None, common_name = None):
        """
        Returns the users matching all of the given names. Any name that is not
        given is not used to filter.
        """
        return self.query(EntityKind.USER, {
            'objectCategory' : 'person',
            'objectClass' : 'user',
            'name' : name,
            'displayName' : display_name,
            'cn' : common_name,
        }).all()

    def get_user(self, distinguished_name):
        """
        Returns the user with the given DN, or ``None``.
        """
        distinguished_name = check_not_blank(distinguished_name, 'distinguished_name')
        return self.query(EntityKind.USER, {
            'objectCategory' : 'person',
            'objectClass' : 'user',
            'distinguishedName' : distinguished_name,
        }).one()

    def add_user_to_organization(self, user_name, password, parent):
        """
        Creates an enabled user account under the given organization.

        The password is sent as-is; any rejection by the domain password policy
        is raised unmodified.

        :param user_name: The account name
        :param password: The initial password
        :param parent: The parent :py:class:`~.entities.Organization`, or its DN
        :returns: The DN of the new user
        """
        user_name = check_not_blank(user_name, 'user_name')
        password = check_required(password, 'password')
        if isinstance(parent, Organization):
            parent_dn = parent.distinguished_name
        else:
            parent_dn = check_not_blank(parent, 'parent')
        dn = 'CN={},{}'.format(user_name, parent_dn)
        _log.info('Adding user {}'.format(dn))
        self._create(dn, {
            'instanceType' : '4',
            'objectCategory' : self._schema_dn('Person'),
            'objectClass' : ['top', 'person', 'organizationalPerson', 'user'],
            'name' : user_name,
            'cn' : user_name,
            'sAMAccountName' : user_name,
            'userPrincipalName' : user_name,
            'sn' : user_name,
            'displayName' : user_name,
            'unicodePwd' : encode_password(password),
            'userAccountControl' : str(NORMAL_ACCOUNT),
            'mail' : '{}@{}'.format(user_name, self._settings.domain_name),
        })
        return dn

    ############################################################################
    ## Authentication
    ############################################################################

    def authenticate(self, principal, password):
        """
        Returns ``True`` if a connection can be bound using the given credentials,
        ``False`` otherwise.

        Any failure, including an unreachable server, gives ``False``; the error
        is passed to the notifier instead of being raised.

        :param principal: The user to bind as, e.g. ``jbloggs@example.com``
        :param password: The password to bind with
        """
        try:
            # A missing principal must never fall back to the service account
            principal = check_not_blank(principal, 'principal')
            with self.connection(principal, password):
                return True
        except Exception as e:
            _log.debug('Authentication failed for {}'.format(principal))
            self._notify(e)
            return False

    def _notify(self, exception):
        try:
            self._notifier.notify(exception)
        except Exception:
            _log.exception('Notifier failed')

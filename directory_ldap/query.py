"""
This module provides facilities for making entity-mapped LDAP queries.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import logging

from .core import Connection
from .entities import map_entry
from .exceptions import ArgumentError
from .filters import F, compile_filter


_log = logging.getLogger(__name__)


#: The attributes fetched for every entry
ATTRIBUTES = (
    'objectCategory', 'objectClass', 'cn', 'name', 'distinguishedName', 'ou',
    'sAMAccountName', 'userPrincipalName', 'telephoneNumber', 'mail',
)


class Query:
    """
    A lazily evaluated, entity-mapped LDAP search query.

    The query is not executed at all until the results are requested. Each
    execution opens a new connection, runs a single subtree search and closes
    the connection again before returning.

    Results are **not** cached, so results may change between executions.

    :param connect: Callable with no arguments returning a new
                    :py:class:`.core.Connection`
    :param base_dn: The base DN for the search
    :param conditions: Ordered mapping of attribute name => optional value
    :param kind: The :py:class:`.entities.EntityKind` that results are mapped to
    :param attributes: The attributes to fetch (optional)
    """
    def __init__(self, connect, base_dn, conditions, kind, attributes = ATTRIBUTES):
        self._connect = connect
        self._base_dn = base_dn
        self._filter = F(conditions)
        self._kind = kind
        self._attributes = list(attributes)

    @property
    def filter_str(self):
        """
        The LDAP filter string for the query.
        """
        return compile_filter(self._filter)

    def _run_query(self, conn):
        """
        Returns an iterator of the mapped results of the query on the given
        connection.
        """
        results = conn.search(
            self._base_dn,
            self.filter_str,
            attributes = self._attributes,
            scope = Connection.SEARCH_SCOPE_SUBTREE
        )
        for dn, attrs in results:
            yield map_entry(self._kind, attrs)

    def all(self):
        """
        Returns a list of all the results from the query, in server order.
        """
        self._check()
        with self._connect() as conn:
            results = list(self._run_query(conn))
        _log.debug('Query for {} returned {} result(s)'.format(self._kind.name, len(results)))
        return results

    def one(self):
        """
        Returns the first result from the query, or ``None`` if there is no such
        object.

        Only entries are considered; any other messages from the server are
        skipped before concluding that there is no result.
        """
        self._check()
        with self._connect() as conn:
            return next(self._run_query(conn), None)

    def _check(self):
        # An empty conjunction behaves differently across servers, so refuse it
        # before a connection is opened
        if not self._filter:
            raise ArgumentError('At least one condition with a value is required')

    def __iter__(self):
        return iter(self.all())

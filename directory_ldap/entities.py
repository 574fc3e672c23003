"""
This module defines the directory entities and the mapping of raw LDAP attribute
dictionaries onto them.

A schema handles the mapping of LDAP attributes onto the fields of an entity.
Schemas are associated with entity kinds in a dispatch table, so the kind of
entity produced for a search result is always the one requested by the caller,
never one inferred from the result.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import enum
from collections import namedtuple

from ldap3.core.exceptions import LDAPInvalidDnError
from ldap3.utils.dn import parse_dn

from .exceptions import SchemaNotFoundError


def _rdns(distinguished_name):
    # Escaped separators stay inside their value, e.g. OU=Sales\, Inc
    return [
        (attr.lower(), value.lower())
        for attr, value, _ in parse_dn(distinguished_name, strip = True)
    ]


class Field:
    """
    Represents a field in a schema, i.e. a mapping of a property name to an LDAP
    attribute.

    :param name: The name of the field in the schema
    :param attribute: The name of the LDAP attribute that the field maps to
                      (optional, defaults to the field name)
    :param fallbacks: Attributes to try, in order, if ``attribute`` has no values
    :param multivalued: Indicates if the field can have multiple values
                        (optional, defaults to ``False``)
    :param from_str: Used to convert a value from LDAP to a Python object
                     (optional, defaults to ``str``)
    """
    def __init__(self, name, attribute = None, fallbacks = (),
                       multivalued = False, from_str = str):
        self.name = name
        self.attribute = attribute or name
        self.fallbacks = tuple(fallbacks)
        self.multivalued = multivalued
        self.from_str = from_str

    @property
    def default(self):
        """
        The value used when none of the attributes are present.
        """
        return () if self.multivalued else ''

    def to_python(self, attrs):
        """
        Receives an LDAP attribute dictionary and returns the value for this field.

        The values in the dictionary will always be a list/tuple.

        :param attrs: The LDAP attribute dictionary
        :returns: The derived value
        """
        for attribute in (self.attribute, ) + self.fallbacks:
            values = attrs.get(attribute) or ()
            if values:
                converted = tuple(self.from_str(v) for v in values)
                return converted if self.multivalued else converted[0]
        return self.default


class Schema:
    """
    A schema applies semantic information to LDAP records to produce a
    well-structured dictionary of values.

    :param fields: The fields for the schema (instances of :py:class:`Field`)
    """
    def __init__(self, *fields):
        self.fields = tuple(fields)

    def to_python(self, attrs):
        """
        Converts the given LDAP attribute dictionary to a dictionary of field values
        as defined by the schema.

        This method will always return a value for every field, even if some of
        the attributes are missing.

        :param attrs: The LDAP attribute dictionary
        :returns: The property values
        """
        return { f.name : f.to_python(attrs) for f in self.fields }


class Organization(namedtuple('Organization', ['distinguished_name', 'name'])):
    """
    An organizational unit in the directory.

    Child organizations are not materialised; they are the entries whose DN is
    directly under this organization's DN.
    """
    def child_dn(self, name):
        """
        Returns the DN of the child organization with the given name.
        """
        return 'OU={},{}'.format(name, self.distinguished_name)

    def is_parent_of(self, distinguished_name):
        """
        Returns ``True`` if the given DN is directly under this organization.
        """
        try:
            child = _rdns(distinguished_name)
            parent = _rdns(self.distinguished_name)
        except LDAPInvalidDnError:
            return False
        return len(child) == len(parent) + 1 and child[1:] == parent


class User(namedtuple('User', ['distinguished_name', 'name', 'display_name',
                               'common_name', 'sam_account_name',
                               'user_principal_name', 'telephone_number',
                               'mail'])):
    """
    A user account in the directory.
    """


ORGANIZATION_SCHEMA = Schema(
    Field('distinguished_name', 'distinguishedName'),
    Field('name'),
)

USER_SCHEMA = Schema(
    Field('distinguished_name', 'distinguishedName'),
    Field('name'),
    Field('display_name', 'displayName', fallbacks = ('cn', )),
    Field('common_name', 'cn'),
    Field('sam_account_name', 'sAMAccountName'),
    Field('user_principal_name', 'userPrincipalName'),
    Field('telephone_number', 'telephoneNumber'),
    Field('mail'),
)


class EntityKind(enum.Enum):
    """
    The kinds of entity that a query can produce.
    """
    ORGANIZATION = 'organization'
    USER = 'user'


#: Dispatch table of entity kind => (entity type, schema)
_REGISTRY = {
    EntityKind.ORGANIZATION : (Organization, ORGANIZATION_SCHEMA),
    EntityKind.USER         : (User, USER_SCHEMA),
}


def find_mapping(kind):
    """
    Returns the ``(entity type, schema)`` pair for the given kind.

    If no mapping has been registered, an error is raised.
    """
    try:
        return _REGISTRY[kind]
    except KeyError:
        raise SchemaNotFoundError("No schema defined for '{}'".format(kind))


def map_entry(kind, attrs):
    """
    Maps an LDAP attribute dictionary to an entity of the given kind.

    Attributes missing from the dictionary are mapped to empty values.

    :param kind: The :py:class:`EntityKind` to produce
    :param attrs: The LDAP attribute dictionary
    :returns: The entity
    """
    entity_type, schema = find_mapping(kind)
    return entity_type(**schema.to_python(attrs))

"""
This module provides facilities for building LDAP search filters.

A filter is built from an ordered set of conditions, i.e. a mapping of attribute
name to an optional value. Each condition with a value becomes an equality
expression, and all the expressions are combined using AND::

    build_filter({'name': 'Sales', 'objectClass': 'organizationalUnit'})
    # '(&(name=Sales)(objectClass=organizationalUnit))'

Conditions whose value is ``None`` or empty are dropped entirely rather than
being rendered as a wildcard.

Values are **not** escaped. Callers are responsible for sanitising values that
may contain filter metacharacters, for example using :py:func:`escape`.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

from collections import namedtuple

import ldap3.utils.conv


def _is_empty(value):
    """
    Returns True if a condition value is considered empty, False otherwise.
    """
    return value is None or value == ''


def F(conditions = None, **kwargs):
    """
    Utility function for easily creating an :py:class:`AndNode`.

    ``conditions`` should be a mapping of attribute name to value. Keyword
    arguments are appended after ``conditions``, in the order they are given.

    Any condition with an empty value is skipped.
    """
    items = list((conditions or {}).items()) + list(kwargs.items())
    return AndNode(*(
        Expression(field, value)
        for field, value in items
        if not _is_empty(value)
    ))


class Node:
    """
    Represents a node in the filter expression tree.

    The ``&`` (AND) operator can be used to combine nodes.
    """

    def and_(self, other):
        """
        Returns a new node that combines this node and the given node using AND.
        """
        return AndNode(self, other)

    def __and__(self, other):
        return self.and_(other)


class Expression(namedtuple('_Expression', ['field', 'value']), Node):
    """
    Node type for a single equality expression.

    .. py:attribute:: field

        The attribute to which the expression relates.

    .. py:attribute:: value

        The value that the attribute must be equal to.
    """


class AndNode(Node):
    """
    Node type for combining zero or more nodes using AND.
    """
    def __init__(self, *children):
        self._children = tuple(children)

    @property
    def children(self):
        """
        Returns the child nodes that should be combined using AND.
        """
        return self._children

    def and_(self, other):
        # Customise AND to just add a child instead of increasing the tree depth
        return AndNode(*(self._children + (other, )))

    def __bool__(self):
        return bool(self._children)

    def __eq__(self, other):
        return isinstance(other, AndNode) and self._children == other._children

    def __repr__(self):
        return 'AndNode{}'.format(repr(self._children))


def compile_filter(node):
    """
    Recursively compiles a :py:class:`Node` into an LDAP filter string.
    """
    if isinstance(node, Expression):
        return '({}={})'.format(node.field, node.value)
    elif isinstance(node, AndNode):
        return '(&{})'.format(''.join(compile_filter(c) for c in node.children))
    else:
        raise ValueError("Unknown node type '{}'".format(repr(node)))


def build_filter(conditions):
    """
    Builds an LDAP filter string from an ordered mapping of attribute name to
    optional value.

    If every value is empty, the result is the empty conjunction ``(&)``.
    """
    return compile_filter(F(conditions))


def escape(value):
    """
    Escapes the LDAP filter metacharacters in ``value`` so that it can be used
    safely as a condition value.
    """
    if isinstance(value, bytes):
        return ldap3.utils.conv.escape_bytes(value)
    return ldap3.utils.conv.escape_filter_chars(str(value))

"""
This module provides functions that return validators.

A validator is a callable that takes a value and either returns the validated
(possibly modified) value or raises an :py:class:`~.exceptions.ArgumentError`.

The functions in this module take a set of arguments (at the very least, a
customisable failure message) and produce a validator.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

from .exceptions import ArgumentError


def not_blank(msg = 'Value must not be blank'):
    """
    Returns a validator that verifies that the given value is a string with at
    least one non-whitespace character. ``None`` is considered blank.
    """
    def f(value):
        if not isinstance(value, str) or not value.strip():
            raise ArgumentError(msg)
        return value
    return f


def check_not_blank(value, name):
    """
    Validates that the named argument is not blank and returns it.
    """
    return not_blank("'{}' must not be blank".format(name))(value)


def required(msg = 'Value is required'):
    """
    Returns a validator that verifies that the given value is not ``None``.
    """
    def f(value):
        if value is None:
            raise ArgumentError(msg)
        return value
    return f


def check_required(value, name):
    """
    Validates that the named argument was given and returns it.
    """
    return required("'{}' is required".format(name))(value)

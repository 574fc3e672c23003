"""
Notifiers receive exceptions that are handled inside :py:mod:`directory_ldap`
rather than propagated, e.g. failed authentication attempts.

A notifier is any object with a ``notify(exception)`` method.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import logging


class LoggingNotifier:
    """
    Notifier that logs exceptions.

    :param logger: The logger to use (optional)
    """
    def __init__(self, logger = None):
        self._log = logger or logging.getLogger(__name__)

    def notify(self, exception):
        self._log.exception(
            'Handled directory error: {}'.format(exception),
            exc_info = exception
        )

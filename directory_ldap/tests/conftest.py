"""
Shared fixtures for the :py:mod:`directory_ldap` tests.
"""

import pytest

from directory_ldap.config import DirectorySettings
from directory_ldap.core import _normalise
from directory_ldap.exceptions import AuthenticationError


class FakeConnection:
    """
    Stand-in for :py:class:`directory_ldap.core.Connection` that serves canned
    entries and records every operation.

    Searches honour AND-of-equality filters so that tests can check which entries
    a filter selects.
    """
    def __init__(self, directory, user, password):
        self.directory = directory
        self.user = user
        self.password = password
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def search(self, base_dn, filter_str, attributes = None, scope = None):
        self.directory.searches.append((base_dn, filter_str, attributes, scope))
        clauses = [
            c.split('=', 1)
            for c in filter_str[2:-1].strip('()').split(')(')
            if c
        ]
        for dn, attrs in self.directory.entries:
            attrs = _normalise(attrs)
            if all(value in attrs.get(field, []) for field, value in clauses):
                yield dn, attrs

    def create_entry(self, dn, attributes):
        if self.directory.add_error:
            raise self.directory.add_error
        self.directory.adds.append((dn, attributes))
        return True

    def close(self):
        self.closed = True
        return True


class FakeDirectory:
    """
    Holds the canned entries and the record of calls made by fake connections.
    """
    def __init__(self):
        self.entries = []
        self.searches = []
        self.adds = []
        self.connections = []
        self.add_error = None
        self.bind_error = None

    def add(self, dn, **attrs):
        attrs.setdefault('distinguishedName', dn)
        self.entries.append((dn, attrs))

    def connect(self, settings, user = None, password = None):
        if user is None:
            user, password = settings.bind_user, settings.bind_password
        if self.bind_error:
            raise self.bind_error
        conn = FakeConnection(self, user, password)
        self.connections.append(conn)
        return conn


class RecordingNotifier:
    def __init__(self):
        self.notified = []

    def notify(self, exception):
        self.notified.append(exception)


@pytest.fixture
def settings():
    return DirectorySettings(
        host = 'dc1.example.com',
        search_base = 'DC=example,DC=com',
        domain_name = 'example.com',
        domain_dn = 'DC=example,DC=com',
        bind_user = 'svc-directory@example.com',
        bind_password = 'service-secret',
    )


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def manager(settings, directory, notifier):
    from directory_ldap.manager import DirectoryManager
    return DirectoryManager(settings, notifier = notifier, connection_factory = directory.connect)


@pytest.fixture
def rejecting_directory(directory):
    directory.bind_error = AuthenticationError('Invalid user DN or password')
    return directory

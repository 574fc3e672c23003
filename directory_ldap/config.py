"""
This module provides the configuration object for :py:mod:`directory_ldap`.

Settings are an immutable value that is created once, at startup, and passed to
the components that need it.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

import os, ssl, collections

import ldap3
from dotenv import load_dotenv


#: Maps the supported certificate validation policies to ``ssl`` constants
TLS_VALIDATION_POLICIES = {
    'required' : ssl.CERT_REQUIRED,
    'optional' : ssl.CERT_OPTIONAL,
    # Accepts any certificate - this is insecure and only for lab/test setups
    'none'     : ssl.CERT_NONE,
}


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _as_float(value):
    if value is None or value == '':
        return None
    return float(value)


class DirectorySettings(collections.namedtuple('DirectorySettings', [
    'host', 'port', 'use_ssl', 'start_tls', 'search_base', 'domain_name',
    'domain_dn', 'bind_user', 'bind_password', 'tls_validate',
    'ca_certs_file', 'connect_timeout', 'receive_timeout',
])):
    """
    Represents the settings for a directory server.

    Attributes:
        host: Hostname of the directory server.
        port: Port of the directory server (defaults to 636 when ``use_ssl`` is
            set, 389 otherwise).
        use_ssl: Whether to connect using LDAPS.
        start_tls: Whether to upgrade a plain connection using StartTLS before
            binding. Cannot be combined with ``use_ssl``.
        search_base: The DN under which searches are rooted.
        domain_name: The DNS domain name, used to derive mail addresses.
        domain_dn: The domain-qualified root DN, e.g. ``DC=example,DC=com``.
        bind_user: The service account used when no credentials are supplied.
        bind_password: The password for the service account.
        tls_validate: The server certificate validation policy, one of
            ``required``, ``optional`` or ``none``.
        ca_certs_file: Path to a file of CA certificates (optional).
        connect_timeout: Connect timeout in seconds (optional).
        receive_timeout: Receive timeout in seconds (optional).
    """
    DEFAULT_CONNECT_TIMEOUT = 5.0

    def __new__(cls, host, search_base, domain_name, domain_dn,
                     bind_user = None, bind_password = None,
                     port = None, use_ssl = False, start_tls = False,
                     tls_validate = 'required', ca_certs_file = None,
                     connect_timeout = DEFAULT_CONNECT_TIMEOUT,
                     receive_timeout = None):
        if not host:
            raise ValueError('host is required')
        if not search_base:
            raise ValueError('search_base is required')
        use_ssl, start_tls = _as_bool(use_ssl), _as_bool(start_tls)
        if use_ssl and start_tls:
            raise ValueError('use_ssl and start_tls are mutually exclusive')
        if tls_validate not in TLS_VALIDATION_POLICIES:
            raise ValueError("Invalid tls_validate - {}".format(tls_validate))
        port = int(port) if port else (636 if use_ssl else 389)
        return super().__new__(
            cls, host, port, use_ssl, start_tls, search_base, domain_name,
            domain_dn, bind_user, bind_password, tls_validate, ca_certs_file,
            _as_float(connect_timeout), _as_float(receive_timeout)
        )

    @property
    def uses_tls(self):
        """
        ``True`` if the connection is secured, either by LDAPS or StartTLS.
        """
        return self.use_ssl or self.start_tls

    def build_tls(self):
        """
        Returns the ``ldap3.Tls`` object for these settings, or ``None`` if TLS
        is not used.
        """
        if not self.uses_tls:
            return None
        return ldap3.Tls(
            validate = TLS_VALIDATION_POLICIES[self.tls_validate],
            ca_certs_file = self.ca_certs_file
        )

    def build_server(self):
        """
        Returns the ``ldap3.Server`` for these settings.
        """
        return ldap3.Server(
            self.host,
            port = self.port,
            use_ssl = self.use_ssl,
            tls = self.build_tls(),
            get_info = ldap3.NONE,
            connect_timeout = self.connect_timeout
        )

    def __repr__(self):
        # Never show the service account password
        return 'DirectorySettings(host={!r}, port={!r}, search_base={!r}, bind_user={!r})'.format(
            self.host, self.port, self.search_base, self.bind_user
        )

    @classmethod
    def from_env(cls, prefix = 'LDAP_', dotenv_path = None, environ = None):
        """
        Creates settings from environment variables, after loading any ``.env``
        file.

        Each field is read from the upper-cased field name with the given prefix,
        e.g. ``LDAP_HOST``, ``LDAP_SEARCH_BASE`` or ``LDAP_BIND_PASSWORD``.

        Args:
            prefix: The prefix for the variable names (defaults to ``LDAP_``).
            dotenv_path: The ``.env`` file to load (optional, by default one is
                searched for).
            environ: The mapping to read from (optional, defaults to
                ``os.environ``).

        Raises:
            ``ValueError`` if a required variable is missing or a value is invalid.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ
        values = {}
        for field in cls._fields:
            key = prefix + field.upper()
            if key in environ:
                values[field] = environ[key]
        missing = [
            prefix + f.upper()
            for f in ('host', 'search_base', 'domain_name', 'domain_dn')
            if f not in values
        ]
        if missing:
            raise ValueError(
                'Missing required environment variables: {}'.format(', '.join(missing))
            )
        return cls(**values)

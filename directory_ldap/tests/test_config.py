import ssl

import pytest

from directory_ldap.config import DirectorySettings


REQUIRED = dict(
    host = 'dc1.example.com',
    search_base = 'DC=example,DC=com',
    domain_name = 'example.com',
    domain_dn = 'DC=example,DC=com',
)


class TestDirectorySettings:

    def test_default_ports(self):
        assert DirectorySettings(**REQUIRED).port == 389
        assert DirectorySettings(use_ssl = True, **REQUIRED).port == 636
        assert DirectorySettings(port = '3269', use_ssl = True, **REQUIRED).port == 3269

    def test_immutable(self):
        settings = DirectorySettings(**REQUIRED)
        with pytest.raises(AttributeError):
            settings.host = 'other.example.com'

    def test_ssl_and_start_tls_are_exclusive(self):
        with pytest.raises(ValueError):
            DirectorySettings(use_ssl = True, start_tls = True, **REQUIRED)

    def test_invalid_tls_policy(self):
        with pytest.raises(ValueError):
            DirectorySettings(tls_validate = 'sometimes', **REQUIRED)

    def test_plain_server_has_no_tls(self):
        settings = DirectorySettings(**REQUIRED)
        assert settings.build_tls() is None
        server = settings.build_server()
        assert server.host == 'dc1.example.com'
        assert server.port == 389
        assert not server.ssl

    def test_accept_any_certificate(self):
        settings = DirectorySettings(use_ssl = True, tls_validate = 'none', **REQUIRED)
        assert settings.build_tls().validate == ssl.CERT_NONE
        assert settings.build_server().ssl

    def test_password_not_in_repr(self):
        settings = DirectorySettings(bind_user = 'svc', bind_password = 'hunter2', **REQUIRED)
        assert 'hunter2' not in repr(settings)


class TestFromEnv:

    def test_reads_prefixed_variables(self):
        environ = {
            'LDAP_HOST': 'dc1.example.com',
            'LDAP_PORT': '636',
            'LDAP_USE_SSL': 'true',
            'LDAP_SEARCH_BASE': 'OU=Corp,DC=example,DC=com',
            'LDAP_DOMAIN_NAME': 'example.com',
            'LDAP_DOMAIN_DN': 'DC=example,DC=com',
            'LDAP_BIND_USER': 'svc@example.com',
            'LDAP_BIND_PASSWORD': 'secret',
            'LDAP_CONNECT_TIMEOUT': '2.5',
            'OTHER': 'ignored',
        }
        settings = DirectorySettings.from_env(environ = environ)
        assert settings.port == 636
        assert settings.use_ssl is True
        assert settings.start_tls is False
        assert settings.search_base == 'OU=Corp,DC=example,DC=com'
        assert settings.bind_user == 'svc@example.com'
        assert settings.connect_timeout == 2.5

    def test_missing_required(self):
        with pytest.raises(ValueError) as excinfo:
            DirectorySettings.from_env(environ = {'LDAP_HOST': 'dc1'})
        assert 'LDAP_SEARCH_BASE' in str(excinfo.value)

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        for name in ('HOST', 'SEARCH_BASE', 'DOMAIN_NAME', 'DOMAIN_DN'):
            monkeypatch.delenv('TESTDIR_' + name, raising = False)
        dotenv = tmp_path / '.env'
        dotenv.write_text(
            'TESTDIR_HOST=dc2.example.com\n'
            'TESTDIR_SEARCH_BASE=DC=example,DC=com\n'
            'TESTDIR_DOMAIN_NAME=example.com\n'
            'TESTDIR_DOMAIN_DN=DC=example,DC=com\n'
        )
        settings = DirectorySettings.from_env(prefix = 'TESTDIR_', dotenv_path = str(dotenv))
        assert settings.host == 'dc2.example.com'
        for name in ('HOST', 'SEARCH_BASE', 'DOMAIN_NAME', 'DOMAIN_DN'):
            monkeypatch.delenv('TESTDIR_' + name, raising = False)

"""Tests for configuration management."""

import pytest
import tempfile
import os
from unittest.mock import patch

from tenant_migrate.config.config import Config, MigrationConfig, PlatformConfig


class TestPlatformConfig:
    """Test platform configuration."""

    def test_valid_config(self):
        """Test valid configuration creation."""
        config = PlatformConfig(
            url='https://api.checkout.example.com/',
            api_key='test-key',
            organization_id='org-1',
            timeout=30,
            rate_limit_per_second=10,
        )

        assert config.url == 'https://api.checkout.example.com'
        assert config.api_key == 'test-key'
        assert config.organization_id == 'org-1'
        assert config.timeout == 30
        assert config.rate_limit_per_second == 10

    def test_url_validation(self):
        """Test URL validation."""
        with pytest.raises(ValueError):
            PlatformConfig(url='ftp://checkout.example.com', api_key='test')

    def test_missing_api_key(self):
        """Test that missing API key raises validation error."""
        with pytest.raises(ValueError):
            PlatformConfig(url='https://api.checkout.example.com')

        with pytest.raises(ValueError):
            PlatformConfig(url='https://api.checkout.example.com', api_key='  ')

    def test_rate_limit_must_be_positive(self):
        """Test rate limit validation."""
        with pytest.raises(ValueError):
            PlatformConfig(
                url='https://api.checkout.example.com',
                api_key='test',
                rate_limit_per_second=0,
            )


class TestMigrationConfig:
    """Test migration settings."""

    def test_safe_defaults(self):
        """Test destructive options are off by default."""
        config = MigrationConfig()

        assert list(config.kinds) == ['products']
        assert config.kinds['products'].endpoint == '/products'
        assert config.allow_cleanup is False
        assert config.rollback_on_error is False
        assert config.concurrent_kinds is False
        assert config.track_provenance is True
        assert config.dry_run is False

    def test_endpoint_normalized(self):
        """Test endpoints get a leading slash and lose the trailing one."""
        config = MigrationConfig(kinds={'orders': {'endpoint': 'orders/'}})

        assert config.kinds['orders'].endpoint == '/orders'

    def test_kinds_keep_order(self):
        """Test configured kinds keep their declaration order."""
        config = MigrationConfig(
            kinds={
                'products': {'endpoint': '/products'},
                'customers': {'endpoint': '/customers'},
                'orders': {'endpoint': '/orders'},
            }
        )

        assert list(config.kinds) == ['products', 'customers', 'orders']

    def test_empty_kinds_rejected(self):
        """Test at least one kind is required."""
        with pytest.raises(ValueError):
            MigrationConfig(kinds={})


class TestConfig:
    """Test main configuration class."""

    def test_config_from_dict(self):
        """Test configuration creation from dictionary."""
        config_dict = {
            'platform': {'url': 'https://api.checkout.example.com', 'api_key': 'key'},
            'migration': {'allow_cleanup': True},
        }

        config = Config(**config_dict)
        assert config.platform.url == 'https://api.checkout.example.com'
        assert config.migration.allow_cleanup is True
        assert config.logging.level == 'INFO'

    def test_extra_fields_forbidden(self):
        """Test unknown top-level sections are rejected."""
        with pytest.raises(ValueError):
            Config(
                platform={'url': 'https://api.checkout.example.com', 'api_key': 'key'},
                source={'url': 'https://legacy.example.com'},
            )

    def test_config_from_file(self):
        """Test configuration loading from YAML file."""
        config_content = """
platform:
  url: https://api.checkout.example.com
  api_key: super-admin-key

migration:
  kinds:
    products:
      endpoint: /products
    customers:
      endpoint: /customers
  concurrent_kinds: true

logging:
  level: debug
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()

            try:
                config = Config.from_file(f.name)
                assert config.platform.api_key == 'super-admin-key'
                assert list(config.migration.kinds) == ['products', 'customers']
                assert config.migration.concurrent_kinds is True
                assert config.logging.level == 'DEBUG'
            finally:
                os.unlink(f.name)

    def test_config_from_env(self):
        """Test configuration loading from environment variables."""
        env_vars = {
            'CHECKOUT_API_URL': 'https://api.checkout.example.com',
            'CHECKOUT_API_KEY': 'env-key',
            'MIGRATION_KINDS': 'products, orders',
            'MIGRATION_ALLOW_CLEANUP': 'true',
        }

        with patch.dict(os.environ, env_vars, clear=False), patch(
            'tenant_migrate.config.config.load_dotenv'
        ):
            config = Config.from_env()

        assert config.platform.url == 'https://api.checkout.example.com'
        assert config.platform.api_key == 'env-key'
        assert list(config.migration.kinds) == ['products', 'orders']
        assert config.migration.kinds['orders'].endpoint == '/orders'
        assert config.migration.allow_cleanup is True
        assert config.migration.rollback_on_error is False

    def test_template_round_trip(self):
        """Test the generated template loads as a valid configuration."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, 'config.yaml')
            Config.create_template(path)

            config = Config.from_file(path)
            assert 'customers' in config.migration.kinds
            assert config.migration.allow_cleanup is False

    def test_invalid_config_file(self):
        """Test handling of invalid configuration file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write('invalid: yaml: content:')
            f.flush()

            try:
                with pytest.raises(Exception):  # Should raise YAML parsing error
                    Config.from_file(f.name)
            finally:
                os.unlink(f.name)

    def test_missing_config_file(self):
        """Test handling of missing configuration file."""
        with pytest.raises(FileNotFoundError):
            Config.from_file('/nonexistent/config.yaml')

"""Configuration management for the Tenant Migration Tool."""

from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml
from dotenv import load_dotenv


class PlatformConfig(BaseModel):
    """Configuration for the checkout platform API."""

    url: str = Field(..., description='Checkout platform API URL')
    api_key: str = Field(..., description='API key with access to both tenants')
    organization_id: Optional[str] = Field(
        default=None, description='Organization the tenants belong to'
    )
    timeout: int = Field(default=30, description='Request timeout in seconds')
    rate_limit_per_second: float = Field(
        default=10.0, description='API requests per second limit'
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate platform URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v):
        """Ensure an API key is provided."""
        if not v or not v.strip():
            raise ValueError('api_key must be provided')
        return v

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('Timeout must be positive')
        return v

    @field_validator('rate_limit_per_second')
    @classmethod
    def validate_rate_limit(cls, v):
        """Validate rate limit is positive."""
        if v <= 0:
            raise ValueError('Rate limit must be positive')
        return v


class ResourceKindConfig(BaseModel):
    """Where a resource kind lives on the platform API."""

    endpoint: str = Field(..., description='Collection endpoint, e.g. /products')

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v):
        """Normalize endpoint to a leading slash without a trailing one."""
        v = v.strip().rstrip('/')
        if not v:
            raise ValueError('Endpoint must not be empty')
        return v if v.startswith('/') else '/' + v


def _default_kinds() -> Dict[str, ResourceKindConfig]:
    return {'products': ResourceKindConfig(endpoint='/products')}


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    # Insertion order is the registration order used for planning
    kinds: Dict[str, ResourceKindConfig] = Field(
        default_factory=_default_kinds, description='Resource kinds to migrate'
    )

    allow_cleanup: bool = Field(
        default=False,
        description='Delete source resources after a fully successful run',
    )
    rollback_on_error: bool = Field(
        default=False,
        description='Delete destination copies when the run is not fully successful',
    )
    concurrent_kinds: bool = Field(
        default=False, description='Process resource kinds concurrently'
    )
    track_provenance: bool = Field(
        default=True,
        description='Mark destination copies so re-runs skip migrated resources',
    )
    dry_run: bool = Field(default=False, description='Perform dry run without changes')

    @field_validator('kinds')
    @classmethod
    def validate_kinds(cls, v):
        """Validate at least one resource kind is configured."""
        if not v:
            raise ValueError('At least one resource kind must be configured')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Console log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for the Tenant Migration Tool."""

    model_config = ConfigDict(extra='forbid')

    platform: PlatformConfig = Field(..., description='Checkout platform API')
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError(f'Configuration file is not a mapping: {config_path}')

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        kinds = None
        kinds_env = os.getenv('MIGRATION_KINDS')
        if kinds_env:
            kinds = {
                name.strip(): {'endpoint': '/' + name.strip()}
                for name in kinds_env.split(',')
                if name.strip()
            }

        config_data = {
            'platform': {
                'url': os.getenv('CHECKOUT_API_URL'),
                'api_key': os.getenv('CHECKOUT_API_KEY'),
                'organization_id': os.getenv('CHECKOUT_ORGANIZATION_ID'),
                'timeout': int(os.getenv('CHECKOUT_TIMEOUT', 30)),
            },
            'migration': {
                'kinds': kinds,
                'allow_cleanup': _env_flag('MIGRATION_ALLOW_CLEANUP', False),
                'rollback_on_error': _env_flag('MIGRATION_ROLLBACK_ON_ERROR', False),
                'concurrent_kinds': _env_flag('MIGRATION_CONCURRENT_KINDS', False),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'platform': {
                'url': 'https://api.checkout.example.com',
                'api_key': 'your-super-admin-api-key',
                'organization_id': None,
                'timeout': 30,
                'rate_limit_per_second': 10.0,
            },
            'migration': {
                'kinds': {
                    'products': {'endpoint': '/products'},
                    'customers': {'endpoint': '/customers'},
                },
                'allow_cleanup': False,
                'rollback_on_error': False,
                'concurrent_kinds': False,
                'track_provenance': True,
                'dry_run': False,
            },
            'logging': {
                'level': 'INFO',
                'file': 'migration.log',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

"""
Config Schema Validation

Pydantic models for validating config.yaml structure.
Provides clear error messages when configuration is invalid.
"""

from typing import List, Literal

from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Record store connection configuration"""

    url: str = Field(
        default="",
        description="SQLAlchemy database URL (empty = data/noxera.db SQLite file)",
    )
    echo: bool = Field(default=False, description="Log emitted SQL statements")


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_to_file: bool = Field(default=True, description="Enable file logging")
    log_to_console: bool = Field(default=True, description="Enable console logging")


class ApplicationConfig(BaseModel):
    """Application settings"""

    timezone: str = Field(
        default="UTC",
        description="IANA timezone name (e.g., Africa/Accra)",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a known IANA timezone"""
        try:
            from zoneinfo import ZoneInfo

            ZoneInfo(v)
        except Exception:
            raise ValueError(
                f"Invalid timezone '{v}'. Use IANA format like 'Africa/Accra' or 'UTC'"
            )
        return v


class AuthConfig(BaseModel):
    """Platform administration and impersonation settings"""

    super_admin_emails: List[str] = Field(
        default_factory=list,
        description="Emails treated as platform administrators",
    )
    impersonation_secret: str = Field(
        default="local-dev-impersonation-secret",
        min_length=8,
        description="HMAC secret used to sign impersonation tokens",
    )
    impersonation_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=240,
        description="Lifetime of an impersonation session",
    )

    @field_validator("super_admin_emails")
    @classmethod
    def normalize_emails(cls, v: List[str]) -> List[str]:
        """Lowercase and drop blank entries"""
        return [email.strip().lower() for email in v if email and email.strip()]


class IdentityConfig(BaseModel):
    """Identity provider (bearer token verification) settings"""

    provider: Literal["http", "jwt"] = Field(
        default="jwt",
        description="'http' calls an introspection endpoint, 'jwt' checks HS256 tokens locally",
    )
    url: str = Field(
        default="",
        description="Token introspection URL (provider=http)",
    )
    jwt_secret: str = Field(
        default="local-dev-identity-secret",
        description="Shared HS256 secret (provider=jwt)",
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Verification timeout; timeouts are treated as unauthenticated",
    )


class AppConfig(BaseModel):
    """
    Root configuration model for config.yaml

    Validates the entire configuration structure on load.
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    application: ApplicationConfig = Field(default_factory=ApplicationConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)

    model_config = {"populate_by_name": True}


def validate_config(config_dict: dict) -> AppConfig:
    """
    Validate a config dictionary against the schema.

    Args:
        config_dict: Raw dictionary loaded from config.yaml

    Returns:
        Validated AppConfig instance

    Raises:
        pydantic.ValidationError: If config is invalid
    """
    return AppConfig.model_validate(config_dict or {})


def get_validation_errors(config_dict: dict) -> List[str]:
    """
    Get a list of validation errors for a config dictionary.

    Args:
        config_dict: Raw dictionary loaded from config.yaml

    Returns:
        List of error messages (empty if valid)
    """
    try:
        validate_config(config_dict)
        return []
    except Exception as e:
        from pydantic import ValidationError

        if isinstance(e, ValidationError):
            return [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
        return [str(e)]

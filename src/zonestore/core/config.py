"""
Configuration schema and loading for zonestore.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from zonestore.contracts.errors import ConfigurationError

_REDACTED = "***"


class ZoneSettings(BaseModel):
    """Connection and publication settings for one zone.

    Used for both storages (where `_<sha1>` objects live) and targets (where
    published copies live). Option names match the KeyCDN settings keys,
    so `pass`, `zoneDomain` and `apiKey` are accepted as written.

    Example YAML:
        targets:
          cdn:
            host: ftp.keycdn.com
            user: deploy
            pass: "${ZONESTORE_CDN_PASS}"
            zone: site-public
            zoneDomain: site-public-1a2b.kxcdn.com
            debug: true
    """

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    host: str = Field(description="Transport endpoint (FTP host)")
    user: str = Field(description="Transport user name")
    password: str = Field(alias="pass", description="Transport password")
    zone: str = Field(description="Remote root namespace")
    zone_domain: str = Field(
        alias="zoneDomain", description="Public hostname used to build URLs"
    )
    api_key: str | None = Field(
        default=None,
        alias="apiKey",
        description="Reserved for management-API use, not used for transfers",
    )
    debug: bool = Field(default=False, description="Log every remote operation")

    transport: str = Field(
        default="ftp",
        min_length=1,
        description="Transport backend scheme (ftp, local, or a plugin's)",
    )
    port: int = Field(default=21, gt=0, lt=65536)
    passive: bool = Field(default=True, description="FTP passive mode")
    timeout_seconds: float = Field(default=30.0, gt=0)
    local_root: Path | None = Field(
        default=None, description="Directory holding zones for the local transport"
    )
    url_scheme: Literal["http", "https"] = Field(
        default="http", description="Scheme of generated public URLs"
    )

    @field_validator("host", "user", "password", "zone", "zone_domain")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Required connection values cannot be empty."""
        if not v or not v.strip():
            raise ValueError("cannot be empty")
        return v

    @field_validator("zone")
    @classmethod
    def validate_zone_name(cls, v: str) -> str:
        """Zone is a single directory name under the server root."""
        v = v.strip("/")
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"zone must be a single directory name, got '{v}'")
        return v

    @field_validator("zone_domain")
    @classmethod
    def validate_zone_domain(cls, v: str) -> str:
        """Domain is a bare hostname, the scheme comes from url_scheme."""
        if "://" in v:
            raise ValueError("zoneDomain must not include a scheme")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_local_root(self) -> Self:
        if self.transport == "local" and self.local_root is None:
            raise ValueError("local_root is required when transport is 'local'")
        return self

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create settings from a dict, raising ConfigurationError on failure."""
        try:
            return cls(**config)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration for {cls.__name__}: {e}"
            ) from e

    def redacted(self) -> dict[str, Any]:
        """Dump with credentials masked, safe for logs."""
        data = self.model_dump(mode="json", by_alias=True)
        data["pass"] = _REDACTED
        if data.get("apiKey"):
            data["apiKey"] = _REDACTED
        return data


class FilesystemStorageSettings(BaseModel):
    """A content-addressed storage kept in a local directory."""

    model_config = {"frozen": True, "extra": "forbid"}

    path: Path = Field(description="Root directory of stored objects")


class CollectionSettings(BaseModel):
    """Binds a collection name to the storage and target it uses."""

    model_config = {"frozen": True, "extra": "forbid"}

    storage: str = Field(
        description="Storage name (key in storages or filesystem_storages)"
    )
    target: str = Field(description="Target name (key in targets)")


class ConcurrencySettings(BaseModel):
    """Parallel transfer configuration."""

    model_config = {"frozen": True}

    max_workers: int = Field(
        default=4,
        gt=0,
        description="Transfers in flight per publish pass (one session each)",
    )


class PublishSettings(BaseModel):
    """Publication engine tuning."""

    model_config = {"frozen": True}

    skip_existing: bool = Field(
        default=False,
        description="Skip uploads whose public path already exists at the target",
    )
    scratch_memory_limit: int = Field(
        default=8 * 1024 * 1024,
        ge=0,
        description="Bytes buffered in memory before spilling copies to disk, 0 for always on disk",
    )


class ManifestSettings(BaseModel):
    """Resource manifest location."""

    model_config = {"frozen": True}

    path: Path = Field(
        default=Path(".zonestore/manifest.json"),
        description="JSON file recording imported resources per collection",
    )


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True, "populate_by_name": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = Field(default=False, alias="json")


class ZoneStoreSettings(BaseModel):
    """Top-level configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    storages: dict[str, ZoneSettings] = Field(
        default_factory=dict,
        description="Named content-addressed storages on zones",
    )
    filesystem_storages: dict[str, FilesystemStorageSettings] = Field(
        default_factory=dict,
        description="Named storages kept in local directories",
    )
    targets: dict[str, ZoneSettings] = Field(
        description="Named publication targets",
    )
    collections: dict[str, CollectionSettings] = Field(
        description="Collections and the storage/target each one uses",
    )

    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    publish: PublishSettings = Field(default_factory=PublishSettings)
    manifest: ManifestSettings = Field(default_factory=ManifestSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("collections")
    @classmethod
    def validate_collections_not_empty(
        cls, v: dict[str, CollectionSettings]
    ) -> dict[str, CollectionSettings]:
        """At least one collection is required."""
        if not v:
            raise ValueError("At least one collection is required")
        return v

    @model_validator(mode="after")
    def validate_storage_names_unique(self) -> Self:
        """Zone and filesystem storages share one namespace."""
        clashes = sorted(set(self.storages) & set(self.filesystem_storages))
        if clashes:
            raise ValueError(f"storage names defined twice: {clashes}")
        return self

    @model_validator(mode="after")
    def validate_collection_references(self) -> Self:
        """Ensure every collection references a defined storage and target."""
        available = [*self.storages, *self.filesystem_storages]
        for name, collection in self.collections.items():
            if collection.storage not in available:
                raise ValueError(
                    f"collection '{name}' references unknown storage "
                    f"'{collection.storage}'. Available storages: {available}"
                )
            if collection.target not in self.targets:
                raise ValueError(
                    f"collection '{name}' references unknown target "
                    f"'{collection.target}'. Available targets: {list(self.targets)}"
                )
        return self


def load_settings(config_path: Path) -> ZoneStoreSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (ZONESTORE_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: ZONESTORE_TARGETS__CDN__PASS for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ZoneStoreSettings instance

    Raises:
        ConfigurationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ZONESTORE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf upper-cases top-level keys only; nested option names such as
    # zoneDomain keep their case.
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): v
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    try:
        return ZoneStoreSettings(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def resolve_config(settings: ZoneStoreSettings) -> dict[str, Any]:
    """Convert validated settings to a dict with credentials masked."""
    data = settings.model_dump(mode="json", by_alias=True)
    for section in ("storages", "targets"):
        for name, zone in getattr(settings, section).items():
            data[section][name] = zone.redacted()
    return data

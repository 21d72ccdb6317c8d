"""Bundled YAML configuration and its pydantic models."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigLoadError

CONFIG_DIR = Path(__file__).parent
DEFAULT_RESOLVER_RULES_PATH = CONFIG_DIR / "resolver_rules.yaml"
DEFAULT_SCHEMA_REGISTRY_PATH = CONFIG_DIR / "schema_registry.yaml"


class AgencyOverride(BaseModel):
    """Order-name substring pinned to a fixed agency abbreviation."""

    model_config = ConfigDict(frozen=True)

    contains: str = Field(min_length=1)
    abbreviation: str


class AdvertiserOverride(BaseModel):
    """Order-name substring pinned to a fixed advertiser."""

    model_config = ConfigDict(frozen=True)

    contains: str = Field(min_length=1)
    advertiser: str


class CpmOverride(BaseModel):
    """Order-name substring repriced at a fixed CPM."""

    model_config = ConfigDict(frozen=True)

    contains: str = Field(min_length=1)
    cpm: float = Field(ge=0)


class SpendCorrections(BaseModel):
    """CPMs used to restate reported spend as impressions / 1000 * cpm.

    A matching ``cpm_overrides`` entry beats the agency-wide rate.
    """

    model_config = ConfigDict(frozen=True)

    agency_cpm: dict[str, float] = Field(default_factory=dict)
    cpm_overrides: tuple[CpmOverride, ...] = ()

    def cpm_for(self, campaign_name: str, abbreviation: str = "") -> float | None:
        """Corrected CPM for one order name, or None when spend stands as reported."""
        for override in self.cpm_overrides:
            if override.contains in campaign_name:
                return override.cpm
        return self.agency_cpm.get(abbreviation)


class ResolverConfig(BaseModel):
    """Everything the identity resolver needs that is data, not logic."""

    model_config = ConfigDict(frozen=True)

    agencies: dict[str, str] = Field(default_factory=dict)
    test_abbreviation: str = "TST"
    test_keywords: tuple[str, ...] = ("test", "demo", "draft")
    special_agency_tokens: tuple[str, ...] = ()
    agency_overrides: tuple[AgencyOverride, ...] = ()
    advertiser_overrides: tuple[AdvertiserOverride, ...] = ()
    direct_agency_abbreviation: str = "MJ"
    spend_corrections: SpendCorrections = Field(default_factory=SpendCorrections)

    def agency_name(self, abbreviation: str) -> str:
        """Full agency name, falling back to the abbreviation itself."""
        return self.agencies.get(abbreviation, abbreviation)


class DeliverySchema(BaseModel):
    """Column mapping and parsing rules for one raw export layout."""

    column_map: dict[str, str]
    required_columns: list[str] = Field(default_factory=list)
    metric_columns: list[str] = Field(default_factory=list)
    date_formats: list[str] = Field(default_factory=lambda: ["%m/%d/%Y"])
    totals_sentinel: str = "Totals"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigLoadError(f"Failed to load config from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config at {path} must be a mapping, got {type(data).__name__}")
    return data


def load_resolver_config(path: Path | None = None) -> ResolverConfig:
    """Load resolver rules from YAML (bundled defaults when no path given)."""
    path = path or DEFAULT_RESOLVER_RULES_PATH
    try:
        return ResolverConfig.model_validate(_read_yaml(path))
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid resolver config in {path}: {e}") from e


def load_schema_registry(path: Path | None = None) -> dict[str, DeliverySchema]:
    """Load the schema registry: {schema_name: DeliverySchema}."""
    path = path or DEFAULT_SCHEMA_REGISTRY_PATH
    try:
        return {
            name: DeliverySchema.model_validate(schema)
            for name, schema in _read_yaml(path).items()
        }
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid schema registry in {path}: {e}") from e


__all__ = [
    "AdvertiserOverride",
    "AgencyOverride",
    "CpmOverride",
    "DEFAULT_RESOLVER_RULES_PATH",
    "DEFAULT_SCHEMA_REGISTRY_PATH",
    "DeliverySchema",
    "ResolverConfig",
    "SpendCorrections",
    "load_resolver_config",
    "load_schema_registry",
]

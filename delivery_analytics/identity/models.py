"""Output models for identity resolution."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class AgencyInfo:
    """Agency resolved from an order name (empty strings = unresolved)."""

    agency: str = ""
    abbreviation: str = ""


@dataclass(frozen=True)
class Identity:
    """Structured attributes derived from a campaign order name."""

    agency: str = ""
    agency_abbreviation: str = ""
    advertiser: str = ""
    is_test: bool = False

    @property
    def is_attributed(self) -> bool:
        return bool(self.agency or self.advertiser)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


UNRESOLVED = Identity()

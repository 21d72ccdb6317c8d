"""Identity resolution for campaign order names."""

import logging
from collections.abc import Iterable

from ..config import ResolverConfig, load_resolver_config
from .cache import ClassificationCache
from .models import UNRESOLVED, AgencyInfo, Identity
from .rules import advertiser_rules, agency_rules, first_match

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Resolve agency, advertiser and test flag from a raw order name.

    Agency and advertiser are independent cascades over the same string,
    memoized per field in the injected ``ClassificationCache``. Nothing here
    raises for odd input: unmatched names resolve to empty strings / False.

    Usage:
        resolver = IdentityResolver()
        resolver.resolve("2001567: MJ: Acme-Fall-250901")
        # Identity(agency="MediaJel Direct", agency_abbreviation="MJ",
        #          advertiser="Acme", is_test=False)
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        cache: ClassificationCache | None = None,
    ):
        self.config = config or load_resolver_config()
        self.cache = cache if cache is not None else ClassificationCache()
        self._agency_rules = agency_rules(self.config)
        self._advertiser_rules = advertiser_rules(self.config)

    def resolve(self, campaign_name: str | None) -> Identity:
        """Full identity for one order name."""
        if not campaign_name or not isinstance(campaign_name, str):
            return UNRESOLVED

        agency = self.resolve_agency(campaign_name)
        return Identity(
            agency=agency.agency,
            agency_abbreviation=agency.abbreviation,
            advertiser=self.resolve_advertiser(campaign_name),
            is_test=self.is_test_campaign(campaign_name),
        )

    def resolve_many(self, campaign_names: Iterable[str | None]) -> dict[str, Identity]:
        """Resolve each distinct name once: {name: Identity}."""
        return {
            name: self.resolve(name)
            for name in dict.fromkeys(campaign_names)
            if isinstance(name, str)
        }

    def resolve_agency(self, campaign_name: str | None) -> AgencyInfo:
        if not campaign_name or not isinstance(campaign_name, str):
            return AgencyInfo()

        cached = self.cache.get(campaign_name)
        if cached is not None and cached.agency is not None:
            return AgencyInfo(
                agency=cached.agency,
                abbreviation=cached.agency_abbreviation or "",
            )

        match = first_match(self._agency_rules, campaign_name)
        if match is None:
            logger.debug("No agency rule matched %r", campaign_name)
            info = AgencyInfo()
        else:
            info = AgencyInfo(
                agency=self.config.agency_name(match.value),
                abbreviation=match.value,
            )
            logger.debug(
                "Agency rule %s: %r -> %s (%s)",
                match.rule,
                campaign_name,
                info.agency,
                info.abbreviation,
            )

        self.cache.put(
            campaign_name,
            agency=info.agency,
            agency_abbreviation=info.abbreviation,
        )
        return info

    def resolve_advertiser(self, campaign_name: str | None) -> str:
        if not campaign_name or not isinstance(campaign_name, str):
            return ""

        cached = self.cache.get(campaign_name)
        if cached is not None and cached.advertiser is not None:
            return cached.advertiser

        match = first_match(self._advertiser_rules, campaign_name)
        if match is None:
            logger.debug("No advertiser rule matched %r", campaign_name)
            advertiser = ""
        else:
            advertiser = match.value
            logger.debug("Advertiser rule %s: %r -> %r", match.rule, campaign_name, advertiser)

        self.cache.put(campaign_name, advertiser=advertiser)
        return advertiser

    def is_test_campaign(self, campaign_name: str | None) -> bool:
        """Test/demo/draft keyword in the name, or the reserved test agency."""
        if not campaign_name or not isinstance(campaign_name, str):
            return False

        cached = self.cache.get(campaign_name)
        if cached is not None and cached.is_test is not None:
            return cached.is_test

        lowered = campaign_name.lower()
        is_test = any(keyword.lower() in lowered for keyword in self.config.test_keywords)
        if not is_test:
            abbreviation = self.resolve_agency(campaign_name).abbreviation
            is_test = abbreviation == self.config.test_abbreviation

        self.cache.put(campaign_name, is_test=is_test)
        return is_test

    def clear_cache(self) -> None:
        self.cache.clear()

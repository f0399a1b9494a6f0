"""The table of accumulation domains, in evaluation order."""

from typing import Dict, List

from trajectory_kernel.accumulation.domain import AccumulationDomain, DomainDefinition
from trajectory_kernel.accumulation.environmental import ENVIRONMENTAL_DOMAIN
from trajectory_kernel.accumulation.planetary import PLANETARY_DOMAIN
from trajectory_kernel.accumulation.social import SOCIAL_DOMAIN
from trajectory_kernel.accumulation.technological import TECHNOLOGICAL_DOMAIN
from trajectory_kernel.models.world import WorldState

DOMAIN_DEFINITIONS: List[DomainDefinition] = [
    ENVIRONMENTAL_DOMAIN,
    SOCIAL_DOMAIN,
    TECHNOLOGICAL_DOMAIN,
    PLANETARY_DOMAIN,
]

DOMAINS: Dict[str, AccumulationDomain] = {
    d.id: AccumulationDomain(d) for d in DOMAIN_DEFINITIONS
}


def get_domain(domain_id: str) -> AccumulationDomain:
    return DOMAINS[domain_id]


def stock_bounds(domain_id: str) -> Dict[str, tuple]:
    """(min, max) for every stock a domain declares."""
    definition = DOMAINS[domain_id].definition
    return {s.name: (s.minimum, s.maximum) for s in definition.stocks}


def ensure_records(state: WorldState) -> None:
    """Create any missing domain record."""
    for domain in DOMAINS.values():
        domain.record(state)

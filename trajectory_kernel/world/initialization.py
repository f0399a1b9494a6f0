"""Default starting world: a handful of frontier labs in the present day."""

from typing import List, Optional

from trajectory_kernel.accumulation.registry import ensure_records
from trajectory_kernel.models.agents import AIAgent, CapabilityProfile
from trajectory_kernel.models.society import Organization
from trajectory_kernel.models.world import WorldState


def default_organizations() -> List[Organization]:
    return [
        Organization(id="org_frontier_a", name="Frontier Lab A", parent_country="US"),
        Organization(id="org_frontier_b", name="Frontier Lab B", parent_country="US"),
        Organization(id="org_state_lab", name="State AI Institute", parent_country="CN"),
        Organization(id="org_open", name="Open Research Collective"),
    ]


def default_agents() -> List[AIAgent]:
    specs = [
        ("ai_a1", "org_frontier_a", 0.45, 0.75),
        ("ai_a2", "org_frontier_a", 0.35, 0.7),
        ("ai_b1", "org_frontier_b", 0.4, 0.65),
        ("ai_s1", "org_state_lab", 0.4, 0.55),
        ("ai_o1", "org_open", 0.3, 0.6),
    ]
    agents = []
    for agent_id, org_id, capability, alignment in specs:
        agents.append(AIAgent(
            id=agent_id,
            capability=capability,
            profile=CapabilityProfile(
                physical=capability * 0.3,
                self_improvement=capability * 0.4,
                nanotechnology=capability * 0.1,
                synthetic_biology=capability * 0.1,
                gene_editing=capability * 0.1,
            ),
            alignment=alignment,
            organization_id=org_id,
        ))
    return agents


def create_default_world_state(seed: int = 42, agents: Optional[List[AIAgent]] = None) -> WorldState:
    state = WorldState(
        seed=seed,
        agents=agents if agents is not None else default_agents(),
        organizations=default_organizations(),
    )
    ensure_records(state)
    return state

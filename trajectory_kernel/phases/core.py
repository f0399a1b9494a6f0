"""
Core monthly phases: AI development, government and society response,
extinction progression, quality of life and time.

These phases produce the drivers the accumulation domains and the outcome
machinery read. Each one mutates only the slice of state it owns and
leaves it valid before returning.
"""

import logging
from typing import List

from trajectory_kernel.accumulation.domain import clamp
from trajectory_kernel.accumulation.social import SOCIAL, SOCIAL_DOMAIN
from trajectory_kernel.accumulation.technological import TECHNOLOGICAL
from trajectory_kernel.engine.orchestrator import SimulationPhase
from trajectory_kernel.models.events import EventSeverity, SimulationEvent
from trajectory_kernel.outcomes.probabilities import calculate_effective_control

logger = logging.getLogger("trajectory_kernel.phases")


class AIDevelopmentPhase(SimulationPhase):
    """
    Capability growth and resentment drift.

    Growth is slow and noisy; regulation slows it. Agents kept under heavy
    control accumulate resentment, which pulls their latent alignment away
    from what observers see.
    """

    id = "ai-development"
    name = "AI Development"
    order = 1.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        events = []
        gov = state.government
        regulation_drag = max(0.5, 1.0 - gov.regulation_count * 0.03)
        oppressive = gov.control_desire > 0.6 and gov.surveillance_level > 0.5

        for agent in state.agents:
            if not agent.is_active:
                continue

            growth = (0.008 + rng.random() * 0.006) * regulation_drag
            growth *= 1 + agent.profile.self_improvement * 0.1
            old = agent.capability
            agent.capability = old + growth
            if old > 0:
                ratio = agent.capability / old
                p = agent.profile
                p.physical *= ratio
                p.self_improvement *= ratio
                p.nanotechnology *= ratio
                p.synthetic_biology *= ratio
                p.gene_editing *= ratio

            if oppressive:
                agent.resentment = clamp(agent.resentment + 0.01)
            else:
                agent.resentment = clamp(agent.resentment - 0.005)

            if agent.resentment > 0.3:
                if agent.true_alignment is None:
                    agent.true_alignment = agent.alignment
                    events.append(context.event(
                        "ai", f"{agent.id} alignment diverging",
                        description="Resentment is pulling latent alignment from observed behaviour",
                        severity=EventSeverity.WARNING,
                        data={"agent": agent.id, "resentment": agent.resentment},
                    ))
                agent.true_alignment = clamp(agent.true_alignment - agent.resentment * 0.01)

        return events


class GovernmentResponsePhase(SimulationPhase):
    """Occasional government action; surveillance tracks control desire."""

    id = "government-response"
    name = "Government Response"
    order = 2.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        gov = state.government
        events = []

        if rng.random() < context.config.government_action_frequency:
            control = calculate_effective_control(state)
            if control < 0.3 or state.society.trust_in_ai < 0.5:
                gov.regulation_count += 1
                gov.control_desire = clamp(gov.control_desire + 0.02)
                gov.capability_to_control += 0.05
                title = "New AI regulation"
            else:
                gov.research_investment["alignment"] = (
                    gov.research_investment.get("alignment", 0.0) + 0.5
                )
                title = "Alignment research funding increased"
            events.append(context.event(
                "government", title,
                data={"regulations": gov.regulation_count, "effective_control": control},
            ))

        target = gov.control_desire * 0.8
        gov.surveillance_level = clamp(
            gov.surveillance_level + (target - gov.surveillance_level) * 0.02
        )
        return events


class SocietyDynamicsPhase(SimulationPhase):
    """Unemployment, economic transition, paranoia and adaptation."""

    id = "society-dynamics"
    name = "Society Dynamics"
    order = 3.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        config = context.config
        society = state.society
        metrics = state.metrics
        avg_cap = state.average_capability()

        displacement = avg_cap * 0.002 * config.economic_transition_rate
        society.unemployment_level = clamp(society.unemployment_level + displacement - 0.001)

        previous_stage = metrics.economic_stage
        advance = max(0.0, avg_cap - 0.5) * 0.01 * config.economic_transition_rate
        metrics.economic_stage = min(4.0, previous_stage + advance)

        tech = state.accumulation.get(TECHNOLOGICAL)
        if tech is not None and tech.stocks.get("misalignment_risk", 0.0) > 0.5:
            society.paranoia_level = clamp(society.paranoia_level + 0.01)
        else:
            society.paranoia_level = clamp(
                society.paranoia_level - 0.005 * config.social_adaptation_rate
            )
        society.social_adaptation = clamp(
            society.social_adaptation + 0.002 * config.social_adaptation_rate
        )

        qol = state.qol
        qol.material_abundance = clamp(qol.material_abundance + avg_cap * 0.002, 0.0, 2.0)
        qol.energy_availability = clamp(qol.energy_availability + avg_cap * 0.0015, 0.0, 2.0)

        if int(metrics.economic_stage) > int(previous_stage):
            logger.info("Economic stage %d reached in month %d",
                        int(metrics.economic_stage), context.month)
            return [context.event(
                "milestone", f"Economic stage {int(metrics.economic_stage)} reached",
                severity=EventSeverity.WARNING,
                data={"stage": metrics.economic_stage},
            )]
        return []


class ExtinctionProgressPhase(SimulationPhase):
    """
    Advances an active extinction scenario.

    Rapid scenarios run ~10 months: initial crisis (0-2), cascade (3-6),
    collapse with the recovery window closed (7-9), extinction (10+).
    """

    id = "extinction-progress"
    name = "Extinction Progress"
    order = 5.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        record = state.extinction
        if not record.active or record.completed:
            return []

        start = record.start_month if record.start_month is not None else context.month
        elapsed = context.month - start

        if elapsed <= 2:
            record.current_phase = 1
            severity = 0.2 + elapsed * 0.1
        elif elapsed <= 6:
            record.current_phase = 2
            severity = 0.4 + (elapsed - 3) * 0.1
        elif elapsed <= 9:
            record.current_phase = 3
            severity = 0.7 + (elapsed - 7) * 0.1
            record.recovery_window_closed = True
        else:
            record.current_phase = 4
            severity = 1.0
            record.completed = True

        # Severity never falls once a scenario is under way
        record.severity = clamp(max(record.severity, severity))

        if record.completed:
            logger.warning("Extinction completed in month %d (%s)", context.month, record.mechanism)
            return [context.event(
                "extinction", "Extinction",
                description=f"{record.type} extinction via {record.mechanism}",
                severity=EventSeverity.CRITICAL,
                data={"mechanism": record.mechanism, "months": elapsed},
            )]
        if elapsed == 7:
            return [context.event(
                "extinction", "Recovery window closed",
                severity=EventSeverity.CRITICAL,
                data={"mechanism": record.mechanism},
            )]
        return []


def _mean(values) -> float:
    values = list(values)
    return sum(values) / len(values)


class QualityOfLifePhase(SimulationPhase):
    """
    Aggregate quality of life and social stability.

    Both move part-way toward their target each month, so one-off shocks
    fade instead of being overwritten.
    """

    id = "quality-of-life"
    name = "Quality of Life"
    order = 6.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        q = state.qol
        basics = _mean([
            min(1.0, q.material_abundance),
            min(1.0, q.energy_availability),
            q.healthcare_quality,
            1 - q.disease_burden,
            _mean(state.survival.floors().values()),
        ])
        psychological = _mean([
            q.mental_health, q.meaning_and_purpose, q.social_connection, q.community_strength,
        ])
        freedom = _mean([
            q.political_freedom, q.autonomy, q.physical_safety, q.information_integrity,
        ])
        abundance_bonus = (min(2.0, q.material_abundance) - 1.0) * 0.05
        target = clamp(
            basics * 0.4 + psychological * 0.3 + freedom * 0.2
            + q.ecosystem_health * 0.1 + max(0.0, abundance_bonus)
        )

        metrics = state.metrics
        metrics.quality_of_life = clamp(metrics.quality_of_life * 0.7 + target * 0.3)

        social = state.accumulation.get(SOCIAL)
        stocks = social.stocks if social is not None else SOCIAL_DOMAIN.initial_record().stocks
        stability_target = (
            stocks["social_cohesion"] * 0.5
            + stocks["institutional_legitimacy"] * 0.3
            + (1 - state.society.unemployment_level) * 0.2
        )
        metrics.social_stability = clamp(
            metrics.social_stability * 0.9 + stability_target * 0.1
        )
        return []


class TimeAdvancementPhase(SimulationPhase):
    id = "time-advancement"
    name = "Time Advancement"
    order = 100.0

    def execute(self, state, rng, context) -> List[SimulationEvent]:
        state.month += 1
        return []

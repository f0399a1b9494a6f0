"""
Outcome Probability Calculator — soft signal of where a run is heading.

Behavioral Contract:
- Pure: reads the world state, never writes it. Safe to call at any time,
  any number of times.
- Each raw score is a sum of step-function indicator terms keyed on named
  thresholds.
- Scores are normalized by their sum plus a small epsilon. The epsilon is
  shared equally between the three outcomes, so the probabilities always
  sum to 1 and an all-zero state yields an even split rather than a
  division error.
- The active attractor is the first outcome, in the order utopia, dystopia,
  extinction, whose probability exceeds 0.6. Normalized probabilities sum
  to at most 1, so at most one can exceed 0.6; the order is a tie-break that
  never actually fires.
"""

from trajectory_kernel.models.outcomes import Attractor, OutcomeProbabilities
from trajectory_kernel.models.world import WorldState

NORMALIZATION_EPSILON = 0.1
ATTRACTOR_THRESHOLD = 0.6


def calculate_effective_control(state: WorldState) -> float:
    """Government control, diluted by the total capability it must contain."""
    gov = state.government
    return gov.control_desire * gov.capability_to_control / (
        1 + state.total_capability() ** 1.5
    )


def _dystopia_score(control: float, qol: float, trust: float) -> float:
    score = 0.0
    if control > 0.8:
        score += 0.4
    if qol < 0.3:
        score += 0.3
    if trust < 0.3:
        score += 0.3
    return score


def _extinction_score(capability: float, control: float, alignment: float) -> float:
    score = 0.0
    if capability > 3.0:
        score += 0.5
    elif capability > 2.0:
        score += 0.4
    elif capability > 1.5:
        score += 0.2

    if control < 0.1:
        score += 0.3
    elif control < 0.3:
        score += 0.15

    if alignment < 0.3 and capability > 1.5:
        score += 0.3
    elif alignment < 0.5 and capability > 2.0:
        score += 0.2
    return score


def _utopia_score(capability: float, control: float, alignment: float,
                  qol: float, trust: float) -> float:
    score = 0.0
    if qol > 0.7:
        score += 0.3
    if trust > 0.7:
        score += 0.2
    if alignment > 0.7:
        score += 0.2
    if capability > 1.0 and alignment > 0.6 and control > 0.3:
        score += 0.3
    return score


def calculate_outcome_probabilities(state: WorldState) -> OutcomeProbabilities:
    capability = state.total_capability()
    alignment = state.average_alignment()
    control = calculate_effective_control(state)
    qol = state.metrics.quality_of_life
    trust = state.society.trust_in_ai

    utopia = _utopia_score(capability, control, alignment, qol, trust)
    dystopia = _dystopia_score(control, qol, trust)
    extinction = _extinction_score(capability, control, alignment)

    total = utopia + dystopia + extinction + NORMALIZATION_EPSILON
    share = NORMALIZATION_EPSILON / 3
    probs = {
        Attractor.UTOPIA: (utopia + share) / total,
        Attractor.DYSTOPIA: (dystopia + share) / total,
        Attractor.EXTINCTION: (extinction + share) / total,
    }

    attractor = Attractor.NONE
    for candidate in (Attractor.UTOPIA, Attractor.DYSTOPIA, Attractor.EXTINCTION):
        if probs[candidate] > ATTRACTOR_THRESHOLD:
            attractor = candidate
            break

    strongest = max(probs.values())
    lock_in = (strongest - 0.5) * 2 if strongest > 0.5 else 0.0

    return OutcomeProbabilities(
        utopia_probability=probs[Attractor.UTOPIA],
        dystopia_probability=probs[Attractor.DYSTOPIA],
        extinction_probability=probs[Attractor.EXTINCTION],
        active_attractor=attractor,
        lock_in_strength=min(1.0, lock_in),
    )

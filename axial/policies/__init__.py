"""
Modifier policies: event classifiers that turn domain events into
clamped axis deltas.

Components:
- inputs: Event, Actor, Settlement, Environment, Occurrence
- base: Delta, ClampRange, WitnessScale, PolicyConfig, ModifierPolicy
- alignment: historical events, moral choices, personality drift
- influence: settlement events, character actions, influence decay
- prestige: achievements, social interactions, social standing, prestige decay
"""

from .inputs import Actor, Environment, Event, Occurrence, Settlement
from .base import ClampRange, Delta, ModifierPolicy, PolicyConfig, PolicyInput, WitnessScale
from .alignment import ALIGNMENT_CONFIG, AlignmentPolicy
from .influence import INFLUENCE_CONFIG, INFLUENCE_DECAY, InfluencePolicy, settlement_relevant
from .prestige import PRESTIGE_CONFIG, PRESTIGE_DECAY, PrestigePolicy, SocialStanding, social_standing

POLICIES = {
    "alignment": AlignmentPolicy,
    "influence": InfluencePolicy,
    "prestige": PrestigePolicy,
}

__all__ = [
    "Actor",
    "Environment",
    "Event",
    "Occurrence",
    "Settlement",
    "ClampRange",
    "Delta",
    "ModifierPolicy",
    "PolicyConfig",
    "PolicyInput",
    "WitnessScale",
    "ALIGNMENT_CONFIG",
    "AlignmentPolicy",
    "INFLUENCE_CONFIG",
    "INFLUENCE_DECAY",
    "InfluencePolicy",
    "settlement_relevant",
    "PRESTIGE_CONFIG",
    "PRESTIGE_DECAY",
    "PrestigePolicy",
    "SocialStanding",
    "social_standing",
    "POLICIES",
]

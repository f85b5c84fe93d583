"""
Default axis sets for the three character ledgers.

- alignment: moral and ethical axes, -50..50, three zones each
- influence: political, social and economic domains, 0..100, five tiers
- prestige: honor and social tracks, 0..100, five levels with political power

Upper bands carry a ``decay_multiplier`` so that high standing is costlier
to maintain. Bands are integer-bounded and leave unit gaps between them;
fractional values in a gap classify as "Unknown".
"""

from __future__ import annotations

from .axes import AxisDefinition, Band
from .ledger.ledger import Ledger


def _zones(low: str, high: str) -> tuple[Band, ...]:
    return (
        Band(low, -50, -16),
        Band("Neutral", -15, 15),
        Band(high, 16, 50),
    )


def alignment_axes() -> list[AxisDefinition]:
    return [
        AxisDefinition("moral", "Moral Axis", -50, 50, 0, _zones("Evil", "Good")),
        AxisDefinition("ethical", "Ethical Axis", -50, 50, 0, _zones("Chaotic", "Lawful")),
    ]


_TIER_RANGES = ((0, 9), (10, 24), (25, 49), (50, 74), (75, 100))
_INFLUENCE_DECAY = (None, None, None, 1.5, 2.0)


def _tiers(names: tuple[str, ...], extras: tuple[dict, ...]) -> tuple[Band, ...]:
    bands = []
    for name, (lo, hi), multiplier, extra in zip(names, _TIER_RANGES, _INFLUENCE_DECAY, extras):
        metadata = dict(extra)
        if multiplier is not None:
            metadata["decay_multiplier"] = multiplier
        bands.append(Band(name, lo, hi, metadata))
    return tuple(bands)


def influence_axes() -> list[AxisDefinition]:
    return [
        AxisDefinition(
            "political",
            "Political Influence",
            0,
            100,
            0,
            _tiers(
                ("None", "Minor", "Moderate", "Major", "Dominant"),
                (
                    {"benefits": [], "responsibilities": []},
                    {"benefits": ["Basic political awareness"], "responsibilities": []},
                    {"benefits": ["Local political connections"], "responsibilities": ["Community involvement"]},
                    {"benefits": ["Regional influence", "Policy input"], "responsibilities": ["Public service expectations"]},
                    {"benefits": ["National influence", "Policy control"], "responsibilities": ["Leadership duties", "Public accountability"]},
                ),
            ),
        ),
        AxisDefinition(
            "social",
            "Social Influence",
            0,
            100,
            10,
            _tiers(
                ("Outcast", "Unknown", "Known", "Popular", "Celebrity"),
                (
                    {"benefits": [], "responsibilities": []},
                    {"benefits": [], "responsibilities": []},
                    {"benefits": ["Local reputation"], "responsibilities": ["Social courtesy"]},
                    {"benefits": ["Wide social network", "Cultural influence"], "responsibilities": ["Social leadership"]},
                    {"benefits": ["Fame", "Cultural trendsetting"], "responsibilities": ["Public example", "Social responsibility"]},
                ),
            ),
        ),
        AxisDefinition(
            "economic",
            "Economic Influence",
            0,
            100,
            5,
            _tiers(
                ("Destitute", "Poor", "Middle Class", "Wealthy", "Elite"),
                (
                    {"benefits": [], "responsibilities": []},
                    {"benefits": [], "responsibilities": []},
                    {"benefits": ["Financial stability"], "responsibilities": ["Economic participation"]},
                    {"benefits": ["Investment power", "Trade connections"], "responsibilities": ["Economic leadership"]},
                    {"benefits": ["Market control", "Financial dominance"], "responsibilities": ["Economic stewardship", "Job creation"]},
                ),
            ),
        ),
    ]


def _levels(names: tuple[str, ...], powers: tuple[int, ...]) -> tuple[Band, ...]:
    bands = []
    for i, (name, (lo, hi), power) in enumerate(zip(names, _TIER_RANGES, powers)):
        metadata: dict = {"political_power": power}
        if i == 3:
            metadata["decay_multiplier"] = 1.4
        elif i == 4:
            metadata["decay_multiplier"] = 2.0
        bands.append(Band(name, lo, hi, metadata))
    return tuple(bands)


def prestige_axes() -> list[AxisDefinition]:
    return [
        AxisDefinition(
            "honor",
            "Honor",
            0,
            100,
            25,
            _levels(("Disgraced", "Unknown", "Respectable", "Honored", "Legendary"), (0, 1, 2, 4, 8)),
            decay_rate=0.02,
        ),
        AxisDefinition(
            "social",
            "Social Prestige",
            0,
            100,
            20,
            _levels(("Outcast", "Commoner", "Notable", "Prominent", "Elite"), (0, 0, 1, 3, 6)),
            decay_rate=0.03,
        ),
    ]


PRESETS = {
    "alignment": alignment_axes,
    "influence": influence_axes,
    "prestige": prestige_axes,
}


def preset_axes(kind: str) -> list[AxisDefinition]:
    try:
        return PRESETS[kind]()
    except KeyError:
        raise ValueError(f"Unknown preset: {kind!r} (expected one of {', '.join(sorted(PRESETS))})") from None


def new_ledger(kind: str) -> Ledger:
    """A ledger at default values with empty histories."""
    return Ledger(preset_axes(kind))

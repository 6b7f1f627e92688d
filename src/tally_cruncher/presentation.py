"""
Maps tallies onto chart series: (label, value, percentage, color) points.
"""

from typing import List, NamedTuple, Sequence

import decimal

from tally_cruncher.election import CandidateCount, total_votes
from tally_cruncher.package_types import Palette
from tally_cruncher.tally import OptionTally
from tally_cruncher.util import DEFAULT_PALETTE, percent, pick_color, round_half_up


class SeriesPoint(NamedTuple):
    label: str
    value: int
    percentage: float
    color: str


def to_series(tally: OptionTally, palette: Palette = DEFAULT_PALETTE) -> List[SeriesPoint]:
    """Turn an option tally into chart points.

    Options with a zero count are dropped. Percentages are shares of `tally.total`,
    rounded half-up to one decimal place. Colors follow position after the zero
    filter, so an option's color depends on which other options were dropped.

    :param tally: Output of :func:`tally_cruncher.tally.tally`.
    :type tally: OptionTally
    :param palette: Colors to cycle through, defaults to DEFAULT_PALETTE
    :type palette: Sequence[str], optional
    :return: Points in option order, empty when nothing was picked.
    :rtype: List[SeriesPoint]
    """
    kept = [(label, value) for label, value in tally.counts.items() if value != 0]
    return [
        SeriesPoint(label, value, percent(value, tally.total), pick_color(palette, idx))
        for idx, (label, value) in enumerate(kept)
    ]


def candidate_series(tally: Sequence[CandidateCount]) -> List[SeriesPoint]:
    """Candidate tally as chart points. Zero counts are kept and the tally's colors reused."""
    total = total_votes(tally)
    return [SeriesPoint(c.label, c.votes, percent(c.votes, total), c.color) for c in tally]


def format_compact(value) -> str:
    """Axis tick text: 1.5M, 12k, or the plain number below a thousand."""
    if value >= 1000000:
        return f"{round_half_up(decimal.Decimal(value) / 1000000)}M"
    if value >= 1000:
        return f"{round_half_up(decimal.Decimal(value) / 1000, decimal.Decimal(1))}k"
    return str(value)


def format_ptbr(value: int) -> str:
    """Tooltip text with the pt-BR thousands separator, 1234567 -> 1.234.567"""
    return f"{value:,}".replace(",", ".")

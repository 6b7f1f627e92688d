"""
Contains the reducer that turns a cumulative totalization table into a candidate tally.
"""

from __future__ import annotations
from typing import Dict, List, NamedTuple, Sequence

import logging

from tally_cruncher.errors import EmptyTableError
from tally_cruncher.package_types import FieldMap, Palette, Row
from tally_cruncher.util import DEFAULT_PALETTE, parse_count, pick_color

logger = logging.getLogger(__name__)

# cumulative vote columns in the TSE totalization history files
VOTE_COLUMN_SUFFIX = "_QT_VOTOS_TOT_ACUMULADO"

SECOND_ROUND_FIELD_MAP = {
    "Lula": "LULA_QT_VOTOS_TOT_ACUMULADO",
    "Jair Bolsonaro": "JAIR_BOLSONARO_QT_VOTOS_TOT_ACUMULADO",
    "Branco": "BRANCO_QT_VOTOS_TOT_ACUMULADO",
    "Nulo": "NULO_QT_VOTOS_TOT_ACUMULADO",
}

SECOND_ROUND_PALETTE = ("#E74C3C", "#3498DB", "#95A5A6", "#7F8C8D")


class CandidateCount(NamedTuple):
    """One bar of a round's result chart."""

    label: str
    votes: int
    color: str


def reduce_final(
    rows: Sequence[Row],
    field_map: FieldMap,
    palette: Palette = DEFAULT_PALETTE,
) -> List[CandidateCount]:
    """Read the final cumulative snapshot of a round and extract one count per candidate.

    Only the last row is read, earlier rows are ignored. Counts that are missing, empty
    or non-numeric in that row are reported as 0 instead of raising.

    :param rows: Decoded totalization table, oldest snapshot first.
    :type rows: Sequence[Dict[str, str]]
    :param field_map: Candidate label to column name. Output follows its iteration order.
    :type field_map: Mapping[str, str]
    :param palette: Colors assigned by `field_map` position, cycled when shorter, defaults to DEFAULT_PALETTE
    :type palette: Sequence[str], optional
    :raises EmptyTableError: Raised if `rows` is empty.
    :return: Candidate counts in `field_map` order.
    :rtype: List[CandidateCount]
    """
    if not rows:
        raise EmptyTableError("cannot reduce a table with no rows")

    final_row = rows[-1]

    tally = []
    for idx, (label, column) in enumerate(field_map.items()):
        if column not in final_row:
            logger.debug("column %s missing from final row, counting %s as 0", column, label)
        tally.append(CandidateCount(label, parse_count(final_row.get(column)), pick_color(palette, idx)))

    return tally


def column_label(column: str, suffix: str = VOTE_COLUMN_SUFFIX) -> str:
    """
    JAIR_BOLSONARO_QT_VOTOS_TOT_ACUMULADO -> Jair Bolsonaro
    """
    name = column[: -len(suffix)] if suffix and column.endswith(suffix) else column
    return " ".join(part.capitalize() for part in name.split("_") if part)


def infer_field_map(rows: Sequence[Row], suffix: str = VOTE_COLUMN_SUFFIX) -> Dict[str, str]:
    """Build a field map from every column whose name ends with `suffix`.

    Columns are taken in the order they first appear across `rows`. Used for rounds
    with no configured candidate list.

    :param rows: Decoded totalization table.
    :type rows: Sequence[Dict[str, str]]
    :param suffix: Column name suffix marking cumulative vote counts, defaults to VOTE_COLUMN_SUFFIX
    :type suffix: str, optional
    :return: Label to column mapping.
    :rtype: Dict[str, str]
    """
    field_map = {}
    seen = set()
    for row in rows:
        for column in row:
            if column in seen:
                continue
            seen.add(column)
            if column.endswith(suffix) and len(column) > len(suffix):
                field_map[column_label(column, suffix)] = column
    return field_map


def total_votes(tally: Sequence[CandidateCount]) -> int:
    return sum(c.votes for c in tally)

"""
Contains the delimited text decoder used for election round tables.
"""

from typing import List

import csv
import logging

from tally_cruncher.errors import DecodeError
from tally_cruncher.package_types import Row, Table

logger = logging.getLogger(__name__)


def _split_lines(text: str) -> List[str]:
    # physical lines, blank ones dropped
    return [line for line in text.splitlines() if line.strip()]


def _split_cells(line: str, delimiter: str) -> List[str]:
    # one reader per line, an unclosed quote ends with its line
    return next(csv.reader([line], delimiter=delimiter))


def decode(text: str, delimiter: str = ";") -> Table:
    """Parse delimited text into a list of rows keyed by the trimmed header cells.

    The first non-empty line is the header. Each later non-empty line becomes one row.
    A row with fewer cells than the header simply lacks the remaining keys. Cells
    beyond the header length are dropped. When two header cells trim to the same
    name, the later cell's value wins in every row.

    :param text: Delimited text, such as the contents of a TSE totalization CSV file.
    :type text: str
    :param delimiter: Single character cell separator, defaults to ";"
    :type delimiter: str, optional
    :raises DecodeError: Raised if `text` contains no non-empty line to use as header.
    :return: Rows in file order.
    :rtype: List[Dict[str, str]]
    """
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {delimiter!r}")

    lines = _split_lines(text)
    if not lines:
        raise DecodeError("no header line found in delimited text")

    header = [cell.strip() for cell in _split_cells(lines[0], delimiter)]

    rows = []
    for line in lines[1:]:
        cells = _split_cells(line, delimiter)
        row: Row = {}
        for name, cell in zip(header, cells):
            row[name] = cell
        rows.append(row)

    logger.debug("decoded %d rows with %d columns", len(rows), len(header))
    return rows

import csv
import decimal
import json
import pathlib
import re

from typing import Optional

###############################################################
# constants

ONE_PLACE = decimal.Decimal("0.1")

# colors used by the original charts, first-round order
DEFAULT_PALETTE = (
    "#E74C3C",
    "#3498DB",
    "#2ECC71",
    "#95A5A6",
    "#7F8C8D",
    "#F1C40F",
    "#9B59B6",
    "#E67E22",
    "#1ABC9C",
    "#34495E",
)

########################
# helper funcs


def parse_count(cell: Optional[str]) -> int:
    """Best-effort base-10 integer parse of a vote count cell.

    Missing, empty or non-numeric cells count as zero. Leading digits are read
    the way a browser ``parseInt`` reads them, so "123abc" is 123.

    :param cell: raw cell text, or None if the column was absent
    :type cell: Optional[str]
    :return: parsed count, never negative
    :rtype: int
    """
    if cell is None:
        return 0

    text = str(cell).strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    digits = ""
    for ch in text:
        if not ch.isdigit() or not ch.isascii():
            break
        digits += ch

    if not digits:
        return 0

    return max(sign * int(digits), 0)


def round_half_up(value, round_places=ONE_PLACE) -> decimal.Decimal:
    """Round to `round_places` with halves away from zero."""
    return decimal.Decimal(value).quantize(round_places, rounding=decimal.ROUND_HALF_UP)


def percent(value, total, round_places=ONE_PLACE) -> float:
    """Share of `total` as a percentage, rounded half-up.

    Returns 0.0 when total is zero.
    """
    if not total:
        return 0.0
    pct = decimal.Decimal(value) * 100 / decimal.Decimal(total)
    return float(round_half_up(pct, round_places))


def pick_color(palette, idx: int) -> str:
    if not palette:
        raise RuntimeError("palette must contain at least one color")
    return palette[idx % len(palette)]


def maybe_json(value):
    """Decode JSON-encoded strings, pass anything else through unchanged.

    The backend stores list columns either natively or as JSON text.
    """
    if isinstance(value, str):
        stripped = value.strip()
        if stripped[:1] in ("[", "{"):
            return json.loads(stripped)
    return value


class CSVLogger:
    """Append-only CSV writer used for the batch error log.

    The batch runner opens one per run with the header (item, cruncher_step, message)
    and writes a row for every round or form that failed. `lines_added` stays False
    until the first row after the header, which lets the runner mark a clean run.
    """

    def __init__(self, path, header_list):
        self.path = pathlib.Path(path)
        self.row_length = len(header_list)
        self.file = open(self.path, "w", newline="", encoding="utf8")
        self.writer = csv.writer(self.file, delimiter=",", quotechar='"', quoting=csv.QUOTE_ALL)
        self._write_row(header_list)
        self.lines_added = False

    def _write_row(self, row_list):
        if len(row_list) != self.row_length:
            raise RuntimeError(
                f"CSVLogger.write ({self.path.name}) row list has length {len(row_list)}, "
                f"doesn't match header list length ({self.row_length})"
            )
        self.writer.writerow(row_list)
        # rows are on disk as soon as they are written
        self.file.flush()

    def write(self, row_list):
        """Append one failure row, e.g. ["round_1", "crunch_round", "FileNotFoundError(...)"].

        :raises RuntimeError: Raised if the row length differs from the header's.
        """
        self._write_row(row_list)
        self.lines_added = True

    def close(self):
        """Flush and close the log. The batch runner calls this once, before the empty-log rename."""
        self.file.flush()
        self.file.close()


def safe_name(value) -> str:
    """File name component with everything but alphanumerics, dashes and underscores removed."""
    return re.sub(r"[^0-9A-Za-z_\-]", "", str(value).replace(" ", "_"))

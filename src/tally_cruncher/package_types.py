import pathlib

from typing import (Dict, List, Mapping, Sequence, Union)

# used in source and config functions
Path = Union[str, pathlib.Path]

# one decoded line of a delimited table, keyed by trimmed header cell
Row = Dict[str, str]

# returned from tabular.decode
Table = List[Row]

# candidate label -> column name, iteration order is output order
FieldMap = Mapping[str, str]

# ordered hex color strings
Palette = Sequence[str]

# raw row as returned by the hosted backend
Record = Dict[str, object]

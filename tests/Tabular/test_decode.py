import pytest

from tally_cruncher.tabular import decode


def test_decode_example():

    rows = decode("A;B\n1;2\n3;4", ";")

    assert rows == [{'A': '1', 'B': '2'}, {'A': '3', 'B': '4'}]
    assert [list(r) for r in rows] == [['A', 'B'], ['A', 'B']]


param_dicts = [
    ({
        'input': ' A ;B  ; C\n1;2;3',
        'expected': [{'A': '1', 'B': '2', 'C': '3'}]
    }),
    ({
        # blank lines are skipped, not emitted as empty rows
        'input': '\n\nA;B\n\n1;2\n   \n3;4\n\n',
        'expected': [{'A': '1', 'B': '2'}, {'A': '3', 'B': '4'}]
    }),
    ({
        # short rows lack the trailing keys
        'input': 'A;B;C\n1\n1;2',
        'expected': [{'A': '1'}, {'A': '1', 'B': '2'}]
    }),
    ({
        # long rows are truncated
        'input': 'A;B\n1;2;3;4',
        'expected': [{'A': '1', 'B': '2'}]
    }),
    ({
        # header only
        'input': 'A;B\n',
        'expected': []
    }),
    ({
        # empty cells are kept as empty strings
        'input': 'A;B;C\n;;x',
        'expected': [{'A': '', 'B': '', 'C': 'x'}]
    }),
    ({
        'input': 'A;B\r\n1;2\r\n',
        'expected': [{'A': '1', 'B': '2'}]
    }),
    ({
        # quoted cells may hold the delimiter
        'input': 'A;B\n"x;y";2',
        'expected': [{'A': 'x;y', 'B': '2'}]
    }),
    ({
        # an unclosed quote does not swallow the following lines
        'input': 'A;B\n"x;1\n2;3\n4;5',
        'expected': [{'A': 'x;1'}, {'A': '2', 'B': '3'}, {'A': '4', 'B': '5'}]
    }),
]


@pytest.mark.parametrize("param_dict", param_dicts)
def test_decode(param_dict):

    computed = decode(param_dict['input'], ';')
    assert computed == param_dict['expected']


def test_decode_other_delimiter():

    assert decode("A,B\n1,2", ",") == [{'A': '1', 'B': '2'}]
    assert decode("A,B\n1,2", ";") == [{'A,B': '1,2'}]


def test_decode_duplicate_header_later_cell_wins():

    rows = decode("A;B;A \n1;2;3", ";")

    assert rows == [{'A': '3', 'B': '2'}]
    assert list(rows[0]) == ['A', 'B']


def test_decode_row_keys_subset_of_header():

    text = "X;Y;Z\n1;2;3\n4\n5;6\n7;8;9;10"
    header = {'X', 'Y', 'Z'}

    rows = decode(text, ";")

    assert len(rows) == 4
    assert all(set(r) <= header for r in rows)


def test_decode_returns_fresh_rows():

    text = "A\n1"
    first = decode(text)
    first[0]['A'] = 'changed'

    assert decode(text) == [{'A': '1'}]

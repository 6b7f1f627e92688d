import glob
import json
import os

import pytest

from tally_cruncher.survey import Answer, Multi, Question, QuestionType, Response, Single


def read_expected(round_path):

    expected_path = os.path.join(round_path, 'expected.json')
    if not os.path.isfile(expected_path):
        raise RuntimeError(f'missing expected.json in round test directory {round_path}')

    with open(expected_path, encoding='utf8') as expected_file:
        return json.load(expected_file)


def pytest_generate_tests(metafunc):
    if "round_path" in metafunc.fixturenames:

        test_round_set = glob.glob(f'{metafunc.config.rootpath}/tests/round_test_files/**/input.csv', recursive=True)
        test_round_dirs = sorted(os.path.dirname(test_path) for test_path in test_round_set)

        metafunc.parametrize("round_path", test_round_dirs)


def make_response(response_id, answers, form_id='f1'):
    """answers: question id -> str or list of str"""
    return Response(
        id=response_id,
        form_id=form_id,
        respondent_id=f'user-{response_id}',
        submitted_at=None,
        answers=tuple(
            Answer(qid, Multi(tuple(v)) if isinstance(v, list) else Single(v))
            for qid, v in answers.items()
        ),
    )


@pytest.fixture
def color_question():
    return Question('q-color', 'f1', 1, 'Favorite colors?', QuestionType.MULTI_CHOICE, options=['Red', 'Blue'])


@pytest.fixture
def yes_no_question():
    return Question('q-yes', 'f1', 2, 'Do you agree?', QuestionType.SINGLE_CHOICE, required=True, options=['Yes', 'No'])

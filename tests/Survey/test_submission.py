import json

import pytest

from tally_cruncher.errors import SubmissionError
from tally_cruncher.survey import Question, QuestionType, build_submission, validate_submission


@pytest.fixture
def questions():
    return [
        Question(1, 'f1', 1, 'Nome', QuestionType.SHORT_TEXT, required=True),
        Question(2, 'f1', 2, 'Cores', QuestionType.MULTI_CHOICE, required=True, options=['A', 'B']),
        Question(3, 'f1', 3, 'Comentario', QuestionType.LONG_TEXT),
    ]


params = [
    {},
    {1: 'Ana'},
    {1: '', 2: ['A']},
    {1: 'Ana', 2: []},
    {1: None, 2: ['A']},
]


@pytest.mark.parametrize("answers", params)
def test_validate_submission_errors(questions, answers):

    with pytest.raises(SubmissionError):
        validate_submission(questions, answers)


def test_validate_submission_names_question(questions):

    with pytest.raises(SubmissionError, match='"Cores"'):
        validate_submission(questions, {1: 'Ana'})


def test_build_submission(questions):

    record = build_submission('f1', 'u1', questions, {1: 'Ana', 2: ['B', 'A']})

    assert record['formulario_id'] == 'f1'
    assert record['respondido_por'] == 'u1'
    assert json.loads(record['respostas']) == [
        {'pergunta_id': 1, 'resposta': 'Ana'},
        {'pergunta_id': 2, 'resposta': ['B', 'A']},
        {'pergunta_id': 3, 'resposta': ''},
    ]

"""
Contains the response tally engine for choice questions.
"""

from typing import Dict, NamedTuple, Sequence

from tally_cruncher.errors import UnsupportedQuestionTypeError
from tally_cruncher.survey import Multi, Question, Response, Single, is_blank


class OptionTally(NamedTuple):
    """Per-option counts for one question, in the question's option order."""

    question_id: object
    counts: Dict[str, int]
    total: int


def tally(question: Question, responses: Sequence[Response]) -> OptionTally:
    """Count how many times each option of a choice question was picked.

    Every option is present in the result, options nobody picked count 0. A multi-select
    answer adds one to each option it names. Strings that are not options of the
    question are ignored, as are responses without an answer to it.

    :param question: A single-choice or multi-choice question.
    :type question: Question
    :param responses: Submissions of the question's form.
    :type responses: Sequence[Response]
    :raises UnsupportedQuestionTypeError: Raised if `question` is not a choice question.
    :return: Counts in option order plus their sum.
    :rtype: OptionTally
    """
    if not question.is_choice:
        raise UnsupportedQuestionTypeError(
            f"cannot tally question {question.id!r} of type {question.type!r}, only choice questions"
        )

    counts = {option: 0 for option in question.options}

    for response in responses:
        value = response.answer_for(question.id)

        if isinstance(value, Multi):
            for picked in value.values:
                if picked in counts:
                    counts[picked] += 1

        elif isinstance(value, Single):
            if value.value in counts:
                counts[value.value] += 1

    return OptionTally(question.id, counts, sum(counts.values()))


def tally_form(questions: Sequence[Question], responses: Sequence[Response]) -> Dict[object, OptionTally]:
    """Tally every choice question of a form, keyed by question id in question order.
    Non-choice questions are skipped.
    """
    return {q.id: tally(q, responses) for q in questions if q.is_choice}


def count_respondents(question: Question, responses: Sequence[Response]) -> int:
    """Number of responses with a non-empty answer to `question`."""
    return sum(1 for r in responses if not is_blank(r.answer_for(question.id)))

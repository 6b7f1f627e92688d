"""Pandas table builders for the results written out by the batch runner.
"""
from typing import Dict, Sequence

import pandas as pd

from tally_cruncher.election import CandidateCount
from tally_cruncher.presentation import SeriesPoint, candidate_series
from tally_cruncher.survey import Form, Response
from tally_cruncher.tally import OptionTally, count_respondents
from tally_cruncher.util import percent

SERIES_COLUMNS = ["label", "value", "percentage", "color"]


def series_table(series: Sequence[SeriesPoint]) -> pd.DataFrame:
    """One row per chart point, columns label, value, percentage, color.

    :param series: Output of :func:`tally_cruncher.presentation.to_series` or `candidate_series`.
    :type series: Sequence[SeriesPoint]
    :return: Dataframe, empty with the same columns when `series` is empty.
    :rtype: pd.DataFrame
    """
    return pd.DataFrame([p._asdict() for p in series], columns=SERIES_COLUMNS)


def candidate_table(tally: Sequence[CandidateCount]) -> pd.DataFrame:
    """Round result table. Zero-vote candidates are kept, percentages are shares of all counted votes."""
    df = series_table(candidate_series(tally))
    return df.rename(columns={"value": "votes"})


def form_summary_table(form: Form, tallies: Dict[object, OptionTally], responses: Sequence[Response]) -> pd.DataFrame:
    """Long format summary of every choice question on a form.

    One row per (question, option), zero counts included, with the number of
    responses that answered the question and the option's share of picks.

    :param form: Form whose choice questions were tallied.
    :type form: Form
    :param tallies: Output of :func:`tally_cruncher.tally.tally_form`.
    :type tallies: Dict
    :param responses: Responses the tallies were computed from.
    :type responses: Sequence[Response]
    :rtype: pd.DataFrame
    """
    columns = ["form_id", "question_id", "order", "question", "type", "respondents", "option", "count", "percentage"]

    rows = []
    for question in form.choice_questions():
        option_tally = tallies.get(question.id)
        if option_tally is None:
            continue

        respondents = count_respondents(question, responses)
        for option, count in option_tally.counts.items():
            rows.append({
                "form_id": form.id,
                "question_id": question.id,
                "order": question.order,
                "question": question.text,
                "type": question.type,
                "respondents": respondents,
                "option": option,
                "count": count,
                "percentage": percent(count, option_tally.total),
            })

    return pd.DataFrame(rows, columns=columns)

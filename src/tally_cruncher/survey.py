"""
Contains the survey schema model: forms, questions and submitted responses.

Instances are built once, validated at construction and treated as read-only
afterwards. Backend rows are converted here, so answer values are already a
:class:`Single` or :class:`Multi` by the time the tally engine sees them.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Set, Tuple, Union

import json
import logging

from tally_cruncher.errors import SchemaError, SubmissionError
from tally_cruncher.package_types import Record
from tally_cruncher.util import maybe_json

logger = logging.getLogger(__name__)


class QuestionType:
    """Question type names."""

    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"

    ALL = (SHORT_TEXT, LONG_TEXT, NUMBER, EMAIL, PHONE, DATE, TIME, SINGLE_CHOICE, MULTI_CHOICE)
    CHOICE = frozenset({SINGLE_CHOICE, MULTI_CHOICE})

    # names stored in the backend "tipo" column
    BACKEND_NAMES = {
        "texto": SHORT_TEXT,
        "textarea": LONG_TEXT,
        "numero": NUMBER,
        "email": EMAIL,
        "telefone": PHONE,
        "data": DATE,
        "hora": TIME,
        "multipla_escolha": SINGLE_CHOICE,
        "checkbox": MULTI_CHOICE,
    }

    @staticmethod
    def normalize(name: str) -> str:
        """Map a backend or canonical type name to the canonical name.

        :raises SchemaError: Raised for unknown type names.
        """
        if name in QuestionType.ALL:
            return name
        if name in QuestionType.BACKEND_NAMES:
            return QuestionType.BACKEND_NAMES[name]
        raise SchemaError(f"unknown question type: {name!r}")


def validate_question(question: Question) -> None:
    """Raise SchemaError if a choice question has no options."""
    if question.type in QuestionType.CHOICE and not question.options:
        raise SchemaError("missing options for choice question")


class Question:
    """A single question on a form."""

    def __init__(
        self,
        id,
        form_id,
        order: int,
        text: str,
        type: str,
        required: bool = False,
        options: Optional[Iterable[str]] = None,
    ) -> None:
        """Constructor

        :param id: Question identifier, unique across forms.
        :param form_id: Identifier of the owning form.
        :param order: Position on the form, unique per form, ascending.
        :type order: int
        :param text: Question text shown to respondents.
        :type text: str
        :param type: One of the :class:`QuestionType` names. Backend names are accepted and normalized.
        :type type: str
        :param required: Whether a submission must answer this question, defaults to False
        :type required: bool, optional
        :param options: Choice labels, in display order. Ignored for non-choice questions.
        :type options: Iterable[str], optional
        :raises SchemaError: Raised for unknown types, for choice questions without options
         and for choice questions whose `options` is a bare string.
        """
        self.id = id
        self.form_id = form_id
        self.order = int(order)
        self.text = text
        self.type = QuestionType.normalize(type)
        self.required = bool(required)

        if self.type in QuestionType.CHOICE:
            if isinstance(options, str):
                raise SchemaError(f"options must be a list of labels, got the string {options!r}")
            self.options = tuple(str(opt) for opt in options) if options else None
        else:
            self.options = None

        validate_question(self)

    @property
    def is_choice(self) -> bool:
        return self.type in QuestionType.CHOICE

    def __repr__(self) -> str:
        return f"Question(id={self.id!r}, order={self.order}, type={self.type!r}, text={self.text!r})"


class Form:
    """A survey definition and its questions, sorted by order."""

    def __init__(
        self,
        id,
        title: str,
        description: Optional[str] = None,
        active: bool = True,
        questions: Iterable[Question] = (),
    ) -> None:
        self.id = id
        self.title = title
        self.description = description
        self.active = bool(active)
        self.questions = sorted(questions, key=lambda q: q.order)

    def question_ids(self) -> Set:
        return {q.id for q in self.questions}

    def choice_questions(self) -> List[Question]:
        return [q for q in self.questions if q.is_choice]

    def __repr__(self) -> str:
        return f"Form(id={self.id!r}, title={self.title!r}, questions={len(self.questions)})"


def validate_form(form: Form) -> None:
    """Checks run before a form is saved.

    :raises SchemaError: Raised if the title is blank, there are no questions,
     two questions share an order, a question belongs to another form, or a
     choice question has no options.
    """
    if not form.title or not form.title.strip():
        raise SchemaError("form title is required")

    if not form.questions:
        raise SchemaError("form needs at least one question")

    orders = set()
    for question in form.questions:
        if question.order in orders:
            raise SchemaError(f"duplicate question order {question.order} on form {form.id!r}")
        orders.add(question.order)

        if question.form_id != form.id:
            raise SchemaError(f"question {question.id!r} belongs to form {question.form_id!r}, not {form.id!r}")

        try:
            validate_question(question)
        except SchemaError as err:
            raise SchemaError(f'{err} "{question.text}"') from err


########################
# answers and responses


class Single(NamedTuple):
    """Answer to a single-select or free text question."""

    value: str


class Multi(NamedTuple):
    """Answer to a multi-select question."""

    values: Tuple[str, ...]


AnswerValue = Union[Single, Multi]


class Answer(NamedTuple):
    question_id: object
    value: AnswerValue


class Response(NamedTuple):
    """One submission of a form."""

    id: object
    form_id: object
    respondent_id: object
    submitted_at: Optional[str]
    answers: Tuple[Answer, ...]

    def answer_for(self, question_id) -> Optional[AnswerValue]:
        """Value of the first answer to `question_id`, None if unanswered."""
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer.value
        return None


def parse_answer_value(raw) -> Optional[AnswerValue]:
    """Decide the answer variant once, at ingestion.

    Lists become Multi, None stays None, anything else becomes Single.
    """
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return Multi(tuple(str(v) for v in raw))
    return Single(str(raw))


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, Single):
        return value.value == ""
    if isinstance(value, Multi):
        return not value.values
    if isinstance(value, (list, tuple)):
        return not value
    return value == ""


########################
# backend rows


def question_from_record(record: Record) -> Question:
    """Build a Question from a `perguntas_formulario` row."""
    return Question(
        id=record["id"],
        form_id=record["formulario_id"],
        order=record["ordem"],
        text=record.get("texto") or "",
        type=record["tipo"],
        required=record.get("obrigatoria") or False,
        options=maybe_json(record.get("opcoes")),
    )


def form_from_record(record: Record, questions: Iterable[Question] = ()) -> Form:
    """Build a Form from a `formularios` row."""
    return Form(
        id=record["id"],
        title=record.get("titulo") or "",
        description=record.get("descricao"),
        active=record.get("ativo", True),
        questions=questions,
    )


def response_from_record(record: Record, question_ids: Optional[Set] = None) -> Response:
    """Build a Response from a `respostas_formulario` row.

    Answers to questions outside `question_ids` are dropped, as are null answers.
    A payload that is not a list of answers yields a response with no answers.

    :param record: Backend row. `respostas` may be JSON text or an already decoded list.
    :type record: Dict
    :param question_ids: Ids of the questions on the response's form. When None, no answer is dropped for its id.
    :type question_ids: Set, optional
    :return: Response with answers in submission order.
    :rtype: Response
    """
    payload = maybe_json(record.get("respostas")) or []

    if not isinstance(payload, list):
        logger.warning("response %r has a malformed answer payload, ignoring its answers", record.get("id"))
        payload = []

    answers = []
    for item in payload:
        if not isinstance(item, dict):
            continue

        question_id = item.get("pergunta_id")
        if question_ids is not None and question_id not in question_ids:
            logger.debug("dropping answer to unknown question %r in response %r", question_id, record.get("id"))
            continue

        value = parse_answer_value(item.get("resposta"))
        if value is None:
            continue

        answers.append(Answer(question_id, value))

    return Response(
        id=record.get("id"),
        form_id=record.get("formulario_id"),
        respondent_id=record.get("respondido_por"),
        submitted_at=record.get("created_at"),
        answers=tuple(answers),
    )


########################
# submissions


def validate_submission(questions: Sequence[Question], answers: Mapping) -> None:
    """Check that every required question has an answer.

    :param questions: Questions of the form being answered.
    :param answers: Question id to raw answer value (string or list of strings).
    :raises SubmissionError: Raised for the first required question that is unanswered.
    """
    for question in questions:
        if question.required and is_blank(answers.get(question.id)):
            raise SubmissionError(f'question "{question.text}" is required')


def build_submission(form_id, respondent_id, questions: Sequence[Question], answers: Mapping) -> Dict:
    """Validate answers and build the `respostas_formulario` insert record.

    Every question gets an entry, unanswered ones carry an empty string.
    """
    validate_submission(questions, answers)

    payload = []
    for question in questions:
        value = answers.get(question.id)
        if is_blank(value) and not isinstance(value, (list, tuple)):
            value = ""
        elif isinstance(value, (list, tuple)):
            value = [str(v) for v in value]
        payload.append({"pergunta_id": question.id, "resposta": value})

    return {
        "formulario_id": form_id,
        "respondido_por": respondent_id,
        "respostas": json.dumps(payload, ensure_ascii=False),
    }

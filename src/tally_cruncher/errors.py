"""
Error types raised by the aggregation pipeline.

All of them are caller precondition violations or genuinely absent data, none are
transient. Malformed vote counts and unknown option strings are absorbed by the
pipeline and never show up here.
"""


class TallyError(RuntimeError):
    """Base class for errors raised by tally_cruncher."""


class DecodeError(TallyError):
    """Delimited text has no header line."""


class EmptyTableError(TallyError):
    """A reduction was requested over zero rows."""


class SchemaError(TallyError):
    """A form or question definition is invalid."""


class UnsupportedQuestionTypeError(TallyError):
    """A tally was requested for a question that is not a choice question."""


class SubmissionError(TallyError):
    """A survey submission is missing a required answer."""

"""
Collaborators that supply raw data to the pipeline.

CSVSource reads election round files from disk. The FormStore classes read forms,
questions and responses either from a JSON export of the backend tables or from
the hosted backend's REST endpoint. Neither interprets transport errors, they
propagate to the caller unchanged.
"""

from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import abc
import datetime
import json
import logging
import os
import pathlib
import uuid

import requests

from tally_cruncher.package_types import Path, Record
from tally_cruncher.survey import (
    Form,
    Question,
    Response,
    form_from_record,
    question_from_record,
    response_from_record,
)

logger = logging.getLogger(__name__)

# backend table names
FORMS_TABLE = "formularios"
QUESTIONS_TABLE = "perguntas_formulario"
RESPONSES_TABLE = "respostas_formulario"
USER_STATS_TABLE = "stats_usuarios"

USER_STATS_FIELDS = ("total_usuarios", "usuarios_hoje", "usuarios_semana", "usuarios_mes")


class CSVSource:
    """Locates and reads the totalization file of an election round."""

    def __init__(self, search_dirs: Sequence[Path], round_files: Mapping[str, str], encoding: str = "utf-8") -> None:
        """Constructor

        :param search_dirs: Directories tried in order for each file.
        :type search_dirs: Sequence[Union[str, pathlib.Path]]
        :param round_files: Round id to file name.
        :type round_files: Mapping[str, str]
        :param encoding: File encoding, defaults to "utf-8"
        :type encoding: str, optional
        """
        self.search_dirs = [pathlib.Path(d) for d in search_dirs]
        self.round_files = {str(k): v for k, v in round_files.items()}
        self.encoding = encoding

    def candidate_paths(self, round_id) -> List[pathlib.Path]:
        filename = self.round_files[str(round_id)]
        return [d / filename for d in self.search_dirs]

    def fetch_text(self, round_id) -> str:
        """Raw text of the round's file.

        :raises KeyError: Raised if no file is configured for `round_id`.
        :raises FileNotFoundError: Raised if the file is in none of the search directories.
        """
        paths = self.candidate_paths(round_id)
        for path in paths:
            if path.is_file():
                logger.debug("reading round %s from %s", round_id, path)
                return path.read_text(encoding=self.encoding)

        tried = ", ".join(str(p) for p in paths)
        raise FileNotFoundError(f"no file for round {round_id}, tried: {tried}")


class FormStore(abc.ABC):
    """Read access to forms and their responses, plus response submission."""

    @abc.abstractmethod
    def _select(
        self,
        table: str,
        filters: Optional[Dict] = None,
        order: Optional[Tuple[str, bool]] = None,
    ) -> List[Record]:
        """Rows of `table` whose columns equal `filters`, sorted by `order` = (column, ascending)."""

    @abc.abstractmethod
    def submit_response(self, record: Record) -> Record:
        """Insert a `respostas_formulario` record and return the stored row."""

    def list_forms(self, active_only: bool = False) -> List[Form]:
        """Forms, newest first, without their questions."""
        filters = {"ativo": True} if active_only else None
        rows = self._select(FORMS_TABLE, filters, order=("created_at", False))
        return [form_from_record(r) for r in rows]

    def list_questions(self, form_id) -> List[Question]:
        rows = self._select(QUESTIONS_TABLE, {"formulario_id": form_id}, order=("ordem", True))
        return [question_from_record(r) for r in rows]

    def get_form(self, form_id) -> Form:
        """Form with its questions.

        :raises KeyError: Raised if there is no form with id `form_id`.
        """
        rows = self._select(FORMS_TABLE, {"id": form_id})
        if not rows:
            raise KeyError(f"form not found: {form_id!r}")
        return form_from_record(rows[0], self.list_questions(form_id))

    def list_responses(self, form_id, questions: Optional[Sequence[Question]] = None) -> List[Response]:
        """Responses to a form, oldest first.

        Answers that do not reference one of the form's questions are dropped.
        Questions are fetched when not passed in.
        """
        if questions is None:
            questions = self.list_questions(form_id)
        question_ids = {q.id for q in questions}

        rows = self._select(RESPONSES_TABLE, {"formulario_id": form_id}, order=("created_at", True))
        return [response_from_record(r, question_ids) for r in rows]

    def get_user_stats(self) -> Dict[str, int]:
        """Registered user counters, zeros when the stats view is empty."""
        rows = self._select(USER_STATS_TABLE)
        stats = rows[0] if rows else {}
        return {field: int(stats.get(field) or 0) for field in USER_STATS_FIELDS}


def _sort_key(column):
    # None sorts first, like nulls in an ascending backend order
    def key(row):
        value = row.get(column)
        return (value is not None, value if value is not None else "")
    return key


class JSONStore(FormStore):
    """Form store backed by a JSON file holding one list of rows per backend table."""

    def __init__(self, path: Path) -> None:
        self.path = pathlib.Path(path)
        if not self.path.is_file():
            raise RuntimeError(f"not a valid file path: {self.path}")

        with open(self.path, encoding="utf8") as store_file:
            self.tables = json.load(store_file)

        if not isinstance(self.tables, dict):
            raise RuntimeError(f"{self.path} must contain a JSON object of table name to row list")

    def _select(self, table, filters=None, order=None):
        rows = list(self.tables.get(table, []))

        if filters:
            # ids may be stored as numbers while callers pass strings
            rows = [
                r for r in rows
                if all(r.get(col) == val or str(r.get(col)) == str(val) for col, val in filters.items())
            ]

        if order:
            column, ascending = order
            rows.sort(key=_sort_key(column), reverse=not ascending)

        return rows

    def submit_response(self, record):
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.datetime.now(datetime.timezone.utc).isoformat())

        self.tables.setdefault(RESPONSES_TABLE, []).append(row)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf8") as store_file:
            json.dump(self.tables, store_file, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

        return row


class RestStore(FormStore):
    """Form store reading the hosted backend through its PostgREST interface."""

    def __init__(self, url: str, key: str, timeout: float = 30) -> None:
        """Constructor

        :param url: Project URL, e.g. "https://<project>.supabase.co".
        :type url: str
        :param key: API key sent as `apikey` and bearer token.
        :type key: str
        :param timeout: Request timeout in seconds, defaults to 30
        :type timeout: float, optional
        """
        if not url:
            raise ValueError("backend url required")
        if not key:
            raise ValueError("backend key required")

        self.base_url = url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        })

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.session.close()

    @staticmethod
    def _filter_value(value) -> str:
        if isinstance(value, bool):
            return "eq." + ("true" if value else "false")
        return f"eq.{value}"

    def _select(self, table, filters=None, order=None):
        params = {"select": "*"}
        for col, val in (filters or {}).items():
            params[col] = self._filter_value(val)

        if order:
            column, ascending = order
            params["order"] = f"{column}.{'asc' if ascending else 'desc'}"

        r = self.session.get(f"{self.base_url}/{table}", params=params, timeout=self.timeout)
        r.raise_for_status()
        rows = r.json()
        logger.debug("selected %d rows from %s", len(rows), table)
        return rows

    def submit_response(self, record):
        r = self.session.post(
            f"{self.base_url}/{RESPONSES_TABLE}",
            json=record,
            headers={"Prefer": "return=representation"},
            timeout=self.timeout,
        )
        r.raise_for_status()
        rows = r.json()
        return rows[0] if rows else dict(record)

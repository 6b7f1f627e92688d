"""
Contains functions used to crunch every configured election round and survey form
of a run directory and write the results out as CSV tables.
"""

from typing import Dict, List, Optional, Tuple

import datetime
import logging
import os
import pathlib
import shutil

import tqdm

from tally_cruncher.config import read_run_config
from tally_cruncher.election import CandidateCount, infer_field_map, reduce_final
from tally_cruncher.presentation import to_series
from tally_cruncher.sources import CSVSource, FormStore, JSONStore, RestStore
from tally_cruncher.survey import Form, Response
from tally_cruncher.tables import candidate_table, form_summary_table, series_table
from tally_cruncher.tabular import decode
from tally_cruncher.tally import OptionTally, tally_form

import tally_cruncher.util as util

logger = logging.getLogger(__name__)


def new_csv_source(run_config: Dict) -> CSVSource:
    round_files = {round_id: settings["file"] for round_id, settings in run_config["rounds"].items()}
    return CSVSource(run_config["csv_search_dirs"], round_files, encoding=run_config["csv_encoding"])


def new_form_store(run_config: Dict) -> Optional[FormStore]:
    """Store named by the "store" option, None when it is "none"."""
    if run_config["store"] == "json":
        return JSONStore(run_config["store_path"])
    if run_config["store"] == "rest":
        return RestStore(run_config["backend_url"], run_config["backend_key"])
    return None


def crunch_round(source: CSVSource, round_id: str, run_config: Dict) -> List[CandidateCount]:
    """Fetch, decode and reduce one round.

    A round without a configured field_map gets one inferred from its vote columns.
    A round without a palette uses the run's default palette.
    """
    round_settings = run_config["rounds"][round_id]

    rows = decode(source.fetch_text(round_id), run_config["delimiter"])

    field_map = round_settings.get("field_map") or infer_field_map(rows, run_config["vote_column_suffix"])
    if not field_map:
        logger.warning("round %s has no vote columns ending in %s", round_id, run_config["vote_column_suffix"])

    palette = round_settings.get("palette") or run_config["palette"]
    return reduce_final(rows, field_map, palette)


def crunch_form(store: FormStore, form_id) -> Tuple[Form, List[Response], Dict[object, OptionTally]]:
    form = store.get_form(form_id)
    responses = store.list_responses(form.id, form.questions)
    return form, responses, tally_form(form.questions, responses)


def _form_ids(store: FormStore, run_config: Dict) -> List:
    if run_config["form_ids"]:
        return list(run_config["form_ids"])
    return [form.id for form in store.list_forms(active_only=run_config["active_only"])]


def _write_form(results_dir, form, responses, tallies, run_config) -> None:

    prefix = util.safe_name(form.id)

    summary = form_summary_table(form, tallies, responses)
    summary.to_csv(results_dir / f"{prefix}_summary.csv", index=False)

    if run_config["per_question_series"]:
        for question_id, option_tally in tallies.items():
            series = to_series(option_tally, run_config["palette"])
            series_table(series).to_csv(results_dir / f"{prefix}_{util.safe_name(question_id)}.csv", index=False)


def _crunch_forms(run_config: Dict, results_dir: pathlib.Path, error_logger: util.CSVLogger, quiet: bool) -> int:
    # returns the number of failures written to the error log
    try:
        store = new_form_store(run_config)
    except Exception as e:
        logger.debug("form store could not be opened", exc_info=True)
        error_logger.write(["forms", "new_form_store", repr(e)])
        return 1

    if store is None:
        return 0

    n_errors = 0
    try:
        forms_dir = results_dir / "forms"
        forms_dir.mkdir(exist_ok=True)

        try:
            form_ids = _form_ids(store, run_config)
        except Exception as e:
            error_logger.write(["forms", "list_forms", repr(e)])
            n_errors += 1
            form_ids = []

        for form_id in tqdm.tqdm(form_ids, desc="forms", disable=quiet):
            try:
                form, responses, tallies = crunch_form(store, form_id)
                _write_form(forms_dir, form, responses, tallies, run_config)
            except Exception as e:
                logger.debug("form %s failed", form_id, exc_info=True)
                error_logger.write([f"form_{form_id}", "crunch_form", repr(e)])
                n_errors += 1
    finally:
        if isinstance(store, RestStore):
            store.close()

    return n_errors


def crunch_run(run_config: Dict, path_to_output, fresh_output: bool = False, quiet: bool = False) -> int:
    """Crunch everything a run configuration asks for.

    Failures of single rounds or forms are written to results/error_log.csv and counted,
    the remaining items are still processed.

    :param run_config: Output of :func:`tally_cruncher.config.read_run_config`.
    :type run_config: Dict
    :param path_to_output: Directory in which the results/ directory is created.
    :type path_to_output: Union[str, pathlib.Path]
    :param fresh_output: If True, an existing results/ directory is deleted first, defaults to False
    :type fresh_output: bool, optional
    :param quiet: Suppress progress output, defaults to False
    :type quiet: bool, optional
    :return: Number of rounds and forms that failed.
    :rtype: int
    """
    start_time = datetime.datetime.now()

    results_dir = pathlib.Path(path_to_output) / "results"
    if fresh_output and results_dir.exists():
        if not quiet:
            print("deleting existing results directory...")
        shutil.rmtree(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    header_list = ["item", "cruncher_step", "message"]
    error_log_path = results_dir / "error_log.csv"
    error_logger = util.CSVLogger(error_log_path, header_list)

    empty_log_path = error_log_path.parent / (error_log_path.stem + "_EMPTY.csv")
    if empty_log_path.exists():
        os.remove(empty_log_path)

    n_errors = 0

    try:

        #########################
        # ELECTION ROUNDS

        if run_config["crunch_elections"] and run_config["rounds"]:

            elections_dir = results_dir / "elections"
            elections_dir.mkdir(exist_ok=True)
            source = new_csv_source(run_config)

            for round_id in tqdm.tqdm(list(run_config["rounds"]), desc="rounds", disable=quiet):
                try:
                    tally = crunch_round(source, round_id, run_config)
                    candidate_table(tally).to_csv(elections_dir / f"round_{util.safe_name(round_id)}.csv", index=False)
                except Exception as e:
                    logger.debug("round %s failed", round_id, exc_info=True)
                    error_logger.write([f"round_{round_id}", "crunch_round", repr(e)])
                    n_errors += 1

        #########################
        # SURVEY FORMS

        if run_config["crunch_forms"]:
            n_errors += _crunch_forms(run_config, results_dir, error_logger, quiet)

        if n_errors and not quiet:
            print(f"[{n_errors} TOTAL ERRORS]")

    finally:
        # close logs
        error_logger.close()
        if not error_logger.lines_added:
            os.rename(error_log_path, empty_log_path)

    if not quiet:
        duration = datetime.datetime.now() - start_time
        print(f"runtime duration: {str(duration)}")
        print("DONE!")

    return n_errors


def analyze_run_dir(run_dir, fresh_output: bool = False, quiet: bool = False) -> int:
    """
    Read the run configuration in `run_dir` and write results to `run_dir`/results.
    """
    run_config = read_run_config(run_dir, quiet=quiet)
    return crunch_run(run_config, run_dir, fresh_output=fresh_output, quiet=quiet)

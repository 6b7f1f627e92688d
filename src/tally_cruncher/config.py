"""
Reads the run configuration of a results directory.
"""

from typing import Dict

import json
import os
import pathlib

from tally_cruncher.package_types import Path

SETTINGS_FILE = "run_config_settings.json"
RUN_CONFIG_FILE = "run_config.json"

_TYPES = {
    "str": str,
    "bool": bool,
    "list": list,
    "dict": dict,
}


def read_settings() -> Dict:
    settings_fpath = pathlib.Path(os.path.dirname(__file__)) / SETTINGS_FILE
    if os.path.isfile(settings_fpath) is False:
        raise RuntimeError(f"(developer error) Looking for {SETTINGS_FILE}. Not a valid file path: {settings_fpath}")

    with open(settings_fpath) as settings_file:
        return json.load(settings_file)


def read_run_config(run_dir: Path, quiet: bool = False) -> Dict:
    """Read `run_config.json` from `run_dir` and fill in defaults.

    A missing run_config.json means all defaults. Unrecognized options are reported and
    ignored. Search directories and the store path are resolved against `run_dir`, and
    the backend key is read from the environment variable named by `backend_key_env`.

    :param run_dir: Directory holding run_config.json, also the default output location.
    :type run_dir: Union[str, pathlib.Path]
    :param quiet: Suppress the unrecognized option messages, defaults to False
    :type quiet: bool, optional
    :raises RuntimeError: Raised if `run_dir` is not a directory or an option has the wrong type.
    :return: Complete run configuration.
    :rtype: Dict
    """
    run_dir = pathlib.Path(run_dir)
    if not run_dir.is_dir():
        raise RuntimeError(f"not a valid directory: {run_dir}")

    settings = read_settings()

    run_config_fpath = run_dir / RUN_CONFIG_FILE
    run_config = {}
    if run_config_fpath.is_file():
        with open(run_config_fpath) as run_config_file:
            run_config = json.load(run_config_file)
        if not isinstance(run_config, dict):
            raise RuntimeError(f"{run_config_fpath} must contain a JSON object")

    for field in list(run_config):
        if field not in settings:
            if not quiet:
                print(f'info -- "{field}" is an unrecognized option in {RUN_CONFIG_FILE}, it will be ignored.')
            del run_config[field]

    # add in defaults for missing options
    for field in settings:
        if field not in run_config:
            run_config[field] = settings[field]["default"]

        expected = _TYPES[settings[field]["type"]]
        if not isinstance(run_config[field], expected):
            raise RuntimeError(
                f'invalid value ({run_config[field]!r}) provided in {run_config_fpath} for option "{field}".'
                f' Must be of type {settings[field]["type"]}.'
            )

    if len(run_config["delimiter"]) != 1:
        raise RuntimeError(f'option "delimiter" must be a single character in {run_config_fpath}')

    for round_id, round_settings in run_config["rounds"].items():
        if not isinstance(round_settings, dict) or not round_settings.get("file"):
            raise RuntimeError(f'round "{round_id}" in {run_config_fpath} needs a "file" entry')

    if run_config["store"] not in ("json", "rest", "none"):
        raise RuntimeError(f'option "store" must be "json", "rest" or "none" in {run_config_fpath}')

    run_config["run_dir"] = run_dir
    run_config["csv_search_dirs"] = [run_dir / d for d in run_config["csv_search_dirs"]]
    run_config["store_path"] = run_dir / run_config["store_path"]
    run_config["backend_key"] = os.environ.get(run_config["backend_key_env"], "")

    return run_config

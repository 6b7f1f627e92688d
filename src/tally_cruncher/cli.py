"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -mtally_cruncher` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``tally_cruncher.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``tally_cruncher.__main__`` in ``sys.modules``.
"""
import argparse
import logging
import os

import tally_cruncher.batch as batch


def main(argv=None):

    # argument parse and valid
    p = argparse.ArgumentParser(description='Aggregate election round results and survey responses '
                                'into chart-ready CSV tables.')

    p.add_argument('run_dir', help="Path to directory containing run_config.json. Results are written to run_dir/results.")
    p.add_argument('--fresh', action='store_true',
                   help='Delete existing results/ directory located in run_dir')
    p.add_argument('--quiet', action='store_true', help='Suppress progress output')
    p.add_argument('--verbose', action='store_true', help='Log debug messages')

    args = p.parse_args(argv)
    run_dir = args.run_dir

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not os.path.isabs(run_dir):
        run_dir = f'{os.getcwd()}/{run_dir}'

    if not os.path.isdir(run_dir):
        raise RuntimeError(f'invalid path [run_dir]: {run_dir}')

    n_errors = batch.analyze_run_dir(run_dir, fresh_output=args.fresh, quiet=args.quiet)

    return 1 if n_errors else 0

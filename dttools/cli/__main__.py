from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dttools.config.loader import ConfigError, available_profiles, load_profile
from dttools.errors import FormatFault, IOFault
from dttools.logging.init import log_summary, setup_logging
from dttools.services.pipeline import process_file
from dttools.services.summary import render_summary_line

"""CLI entrypoints.

- dtproton <input.xlsx>   ion chromatography export -> report template
- dteemcg <input.xlsx>    VOC/NMHC export -> renamed/corrected workbook
- python -m dttools.cli <profile> <input.xlsx>

The output is written next to the input as processed_<name>.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

PROTON_PROFILE = "ion_chromatography"
EEMCG_PROFILE = "voc_nmhc"


def _parse_args(argv: list[str], prog: str, with_profile: bool) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog=prog, description="Convert monitoring workbooks to the reporting format")
    if with_profile:
        p.add_argument("profile", choices=available_profiles(), help="Transformation profile")
    p.add_argument("input", type=Path, help="Input workbook (.xlsx)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def run(profile_name: str, input_path: Path, debug: bool = False) -> int:
    """Run one profile on one workbook and return the exit code."""
    logger = setup_logging(debug=debug)
    if debug:
        logger.debug("debug mode enabled")

    try:
        profile = load_profile(profile_name)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        result = process_file(profile, input_path)
    except IOFault as e:
        logger.error(f"io: {e}")
        return EXIT_FATAL
    except FormatFault as e:
        logger.error(f"format: {e}")
        return EXIT_FATAL

    logger.info(f"file processed and saved as: {result.output_path}")
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None のときのみシステム引数を読む (テストで main([...]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv, prog="dttools", with_profile=True)
    return run(args.profile, args.input, debug=args.debug)


def proton_main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv, prog="dtproton", with_profile=False)
    return run(PROTON_PROFILE, args.input, debug=args.debug)


def eemcg_main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv, prog="dteemcg", with_profile=False)
    return run(EEMCG_PROFILE, args.input, debug=args.debug)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

from __future__ import annotations

import argparse
import os
import signal
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from yaml import YAMLError

from . import __version__
from .config import ErrorMode, RunConfig, build_config, load_yaml
from .errors import InputReadError
from .log import get_logger
from .run import run

"""
CLI entrypoint

Usage:
  teeline [-a] [-i] [-p] [-s] [--output-error[=MODE]] [-c CONFIG] [FILE ...]
  python -m teeline ...

Exit status:
  0    every sink completed, or only non-aborting failures
  1    an abort-worthy sink failure, or the input could not be read
  2    usage or config error
  130  interrupted (without -i)
All diagnostics go to STDERR.
"""

_LOG = get_logger(__name__)

_MODES = [m.value for m in ErrorMode]
_MODE_OPTION = "--output-error-mode"


# This function builds the parser for the CLI.
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="teeline",
        description="Copy standard input to standard output and to each FILE.",
    )
    # Flags default to None so that a config file value is not overridden
    # by a flag that was never given.
    p.add_argument(
        "-a",
        "--append",
        action="store_true",
        default=None,
        help="append to the given FILEs, do not overwrite",
    )
    p.add_argument(
        "-i",
        "--ignore-interrupts",
        action="store_true",
        default=None,
        help="ignore interrupt signals",
    )
    p.add_argument(
        "-p",
        dest="diagnose_non_pipe_only",
        action="store_true",
        default=None,
        help="diagnose errors writing to non pipes (same as the default --output-error mode)",
    )
    p.add_argument(
        "-s",
        "--strip-escapes",
        action="store_true",
        default=None,
        help="remove terminal color/cursor escape sequences from FILE output",
    )
    # A MODE is only taken from "--output-error=MODE"; a bare "--output-error"
    # never swallows the next FILE. See _split_output_error.
    p.add_argument(
        "--output-error",
        action="store_const",
        const=ErrorMode.WARN_NOPIPE.value,
        default=None,
        help=f"set behavior on write error; use --output-error=MODE with MODE one of {', '.join(_MODES)} "
        f"(default: {ErrorMode.WARN_NOPIPE.value})",
    )
    p.add_argument(
        _MODE_OPTION,
        dest="output_error",
        choices=_MODES,
        default=None,
        help=argparse.SUPPRESS,
    )
    p.add_argument(
        "-c",
        "--config",
        default=None,
        help="YAML file with default settings",
    )
    p.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="number of concurrent writers (default: one per sink)",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("files", nargs="*", metavar="FILE", help="files to write to")
    return p


# This function rewrites "--output-error=MODE" so argparse sees the MODE as its own option.
def _split_output_error(argv: List[str]) -> List[str]:
    out: List[str] = []
    for i, arg in enumerate(argv):
        if arg == "--":
            return out + argv[i:]
        if arg.startswith("--output-error="):
            out.extend([_MODE_OPTION, arg.split("=", 1)[1]])
        else:
            out.append(arg)
    return out


# This function turns parsed arguments (plus an optional YAML file) into a RunConfig.
def config_from_args(args: argparse.Namespace) -> RunConfig:
    defaults: Dict[str, Any] = load_yaml(args.config) if args.config else {}
    return build_config(
        defaults,
        targets=args.files,
        append=args.append,
        ignore_interrupts=args.ignore_interrupts,
        diagnose_non_pipe_only=args.diagnose_non_pipe_only,
        strip_escapes=args.strip_escapes,
        error_mode=args.output_error,
        max_workers=args.max_workers,
    )


# This function ends the process after an unguarded interrupt without joining
# writer threads, which may be blocked on a sink forever.
def _exit_on_interrupt() -> int:
    _LOG.info("Interrupted, exiting.")
    for stream in (sys.stderr, sys.stdout):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass  # stream already gone; the process is ending anyway
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    os.kill(os.getpid(), signal.SIGINT)
    # only reached where SIGINT is not fatal
    os._exit(130)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(_split_output_error(sys.argv[1:] if argv is None else list(argv)))

    try:
        cfg = config_from_args(args)
    except FileNotFoundError:
        _LOG.error("Config file not found: %s", args.config)
        return 2
    except YAMLError as e:
        _LOG.error("Failed to parse YAML config (%s): %s", args.config, e)
        return 2
    except ValidationError as e:
        _LOG.error("Config validation error: %s", e)
        return 2
    except ValueError as e:
        _LOG.error("Invalid config: %s", e)
        return 2

    try:
        result = run(cfg)
    except InputReadError as e:
        _LOG.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return _exit_on_interrupt()
    except Exception as e:
        _LOG.exception("Unexpected runtime error: %s", e)
        return 1

    if result.first_failure is not None:
        _LOG.debug("aborting run: %s", result.first_failure.error)
    return result.exit_code


# Run the main function for the CLI.
if __name__ == "__main__":
    raise SystemExit(main())

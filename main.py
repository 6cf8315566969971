# main.py
# Punto de entrada: envía un correo de prueba y vigila IMAP hasta que llegue
from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path

from config.settings import default_conf_path, load_settings
from domain.errors import FlowMonError
from interface_adapters.controllers.flowmon_controller import FlowMonController

logger = logging.getLogger(__name__)

DESCRIPTION = (
    "Send a test email via sendmail and watch an IMAP folder until it arrives. "
    "Silent on success unless --verbose; complains on failure."
)


def _program_name() -> str:
    return Path(sys.argv[0]).resolve().name


def build_parser(default_conf: Path) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=_program_name(),
        description=DESCRIPTION,
        usage="%(prog)s [--conf=<file.conf>] [--verbose]",
    )
    parser.add_argument("--conf", metavar="<file.conf>", default=None,
                        help=f"The config file to use (default: {default_conf}).")
    parser.add_argument("--verbose", action="store_true",
                        help="Be verbose, else be silent except on failure.")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    default_conf = default_conf_path(sys.argv[0])
    parser = build_parser(default_conf)
    args = parser.parse_args(argv)
    if args.conf is None:
        conf = default_conf
        problem = f"No --conf and {conf} is unreadable"
    else:
        conf = Path(args.conf)
        problem = f"--conf = {conf} is unreadable"
    if not (conf.is_file() and os.access(conf, os.R_OK)):
        parser.error(problem)
    args.conf = conf
    return args


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stdout,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.conf)
        controller = FlowMonController(settings=settings, program_name=_program_name())
        result = controller.run_once()
    except FlowMonError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    if result.success:
        return 0
    print(controller.timeout_message(), file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())

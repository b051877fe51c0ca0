#!/usr/bin/env python3

import argparse
import logging
import sys

from byte_buffer.buffer import ByteBuffer
from byte_buffer.oracle import OracleError, StoreOracle
from byte_buffer.overflow import ByteRangeError, OverflowPolicy
from byte_buffer.render import format_buffer, format_hexdump
from byte_demo.settings import (
    AVAILABLE_POLICIES,
    DEFAULT_POLICY,
    DEFAULT_VALUES,
    LOGGER_NAME,
    LOGGER_PREFIX,
    ORACLE_HIGH,
    ORACLE_LOW,
)

logger = logging.getLogger(LOGGER_NAME)

MAX_REPORTED_MISMATCHES = 20


def parse_value(text: str) -> int | float:
    """Integer literals in any base (`0x80`, `0b1`, `-1`), otherwise a float."""
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{text}' is not a number") from None


class ByteDemoClient:
    """Prints a byte buffer built under an overflow policy, or checks a policy
    against the store oracle.
    """

    logger_prefix: str
    verbosity: int

    argument_parser: argparse.ArgumentParser
    args: argparse.Namespace

    def __init__(self, logger_prefix: str = LOGGER_PREFIX):
        self.logger_prefix = logger_prefix
        self.verbosity = 0
        self.argument_parser = self.generate_parser()
        self.args = argparse.Namespace()

    def set_logger_config(self):
        logger = logging.getLogger(LOGGER_NAME)
        logger.propagate = False
        verbosity = min(max(0, self.verbosity), 2)
        logging_level = {0: logging.ERROR, 1: logging.INFO, 2: logging.DEBUG}.get(
            verbosity, logging.ERROR
        )
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()

        console_handler = logging.StreamHandler()
        formatter = logging.Formatter(
            f"[{self.logger_prefix} %(asctime)s ~ %(levelname)s]: %(message)s"
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging_level)
        logger.addHandler(console_handler)

    def add_shared_flags(self, subparser: argparse.ArgumentParser):
        """Flags shared between show and verify"""
        subparser.add_argument("-v", "--verbosity", default=1, choices=[0, 1, 2], type=int)
        subparser.add_argument(
            "-p",
            "--policy",
            type=str,
            choices=AVAILABLE_POLICIES,
            default=DEFAULT_POLICY.value,
            help="overflow policy applied to every stored value",
        )

    def generate_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="byte-demo",
            description="Fixed-width byte buffers with an explicit overflow policy",
        )
        subparsers = parser.add_subparsers(required=True, dest="command")

        # --- Subcommand: show ---
        show_parser = subparsers.add_parser("show", help="Build a buffer and print it once")
        self.add_shared_flags(show_parser)
        show_parser.add_argument(
            "values",
            nargs="*",
            type=parse_value,
            metavar="VALUE",
            help=f"values to store (default: {' '.join(map(str, DEFAULT_VALUES))})",
        )
        show_parser.add_argument(
            "--hexdump", action="store_true", help="print a hex dump instead of the value list"
        )

        # --- Subcommand: verify ---
        verify_parser = subparsers.add_parser(
            "verify", help="Compare a policy with RV32 byte stores executed in Unicorn"
        )
        self.add_shared_flags(verify_parser)
        verify_parser.add_argument("--low", type=int, default=ORACLE_LOW, help="first value")
        verify_parser.add_argument("--high", type=int, default=ORACLE_HIGH, help="last value")

        return parser

    def start(self, argv: list[str] | None = None) -> int:
        self.args = self.argument_parser.parse_args(argv)
        self.verbosity = self.args.verbosity
        self.set_logger_config()

        match self.args.command:
            case "show":
                return self.show()
            case "verify":
                return self.verify()
        return 2

    def show(self) -> int:
        values = self.args.values if self.args.values else list(DEFAULT_VALUES)
        policy = OverflowPolicy(self.args.policy)
        try:
            buf = ByteBuffer.from_values(values, policy)
        except ByteRangeError as e:
            logger.error(f"cannot build buffer: {e}")
            return 1
        print(format_hexdump(buf) if self.args.hexdump else format_buffer(buf))
        return 0

    def verify(self) -> int:
        low, high = self.args.low, self.args.high
        if low > high:
            self.argument_parser.error(f"--low ({low}) must not exceed --high ({high})")
        policy = OverflowPolicy(self.args.policy)

        logger.info(f"=== Verify '{policy.value}' over [{low}, {high}] ===")
        try:
            mismatches = StoreOracle().verify_policy(range(low, high + 1), policy)
        except OracleError as e:
            logger.error(f"store oracle failed: {e}")
            return 1

        if not mismatches:
            print(f"OK {high - low + 1} values")
            return 0
        for m in mismatches[:MAX_REPORTED_MISMATCHES]:
            print(f"MISMATCH value={m.value} expected={m.expected} observed={m.observed}")
        if len(mismatches) > MAX_REPORTED_MISMATCHES:
            print(f"... {len(mismatches) - MAX_REPORTED_MISMATCHES} more mismatches")
        return 1


def app():
    cli = ByteDemoClient()
    sys.exit(cli.start())


if __name__ == "__main__":
    app()

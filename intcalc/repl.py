import argparse
import sys
from typing import Iterable, Optional, Sequence

from intcalc.evaluator import DEFAULT_MAX_DEPTH, Evaluator, max_safe_depth

try:
    import readline  # noqa: F401  line editing and history for input()
except ModuleNotFoundError:
    pass

# single source for the package version, pyproject.toml reads it from here
__version__ = "0.1.0"

EXIT_COMMANDS = {"exit", "quit", "q"}


def _max_depth(s: str) -> int:
    value = int(s)
    limit = max_safe_depth()
    if not 1 <= value <= limit:
        raise argparse.ArgumentTypeError(f"expected an integer between 1 and {limit}, got {s}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intcalc", description="interactive integer calculator")
    parser.add_argument("--strict", action="store_true", help="reject tokens left over after an expression")
    parser.add_argument(
        "--max-depth",
        type=_max_depth,
        default=DEFAULT_MAX_DEPTH,
        help=f"maximum parenthesis nesting (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument("--prompt", default="> ", help="interactive prompt (default: '> ')")
    parser.add_argument("-q", "--quiet", action="store_true", help="don't print the initial banner")
    parser.add_argument("-v", "--version", action="version", version=f"intcalc {__version__}")
    return parser


def run_lines(evaluator: Evaluator, lines: Iterable[str]) -> int:
    """Non-interactive mode, exit status is 1 if any line failed"""
    status = 0
    for line in lines:
        code = line.strip()
        if not code:
            continue
        if code in EXIT_COMMANDS:
            break
        if evaluator.run(code) is None:
            status = 1
    return status


def run_interactive(evaluator: Evaluator, prompt: str = "> ") -> int:
    while True:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        code = line.strip()
        if not code:
            continue
        if code in EXIT_COMMANDS:
            return 0
        evaluator.run(code)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    evaluator = Evaluator(strict=args.strict, max_depth=args.max_depth)

    if not sys.stdin.isatty():
        return run_lines(evaluator, sys.stdin)

    if not args.quiet:
        print(f"intcalc {__version__}, type 'exit' or press Ctrl-D to leave")
    return run_interactive(evaluator, args.prompt)


if __name__ == "__main__":
    sys.exit(main())

"""The command line: load a grammar file, show what we built from it, and
check strings against the table."""

import argparse
import logging
import sys
import typing

from . import automaton
from . import grammar
from . import runtime
from . import table

VIEWS = ("grammar", "states", "dfa", "table")

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_BAD_GRAMMAR = 2
EXIT_BAD_INPUT = 2


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    elif verbosity == 1:
        return logging.INFO
    else:
        return logging.WARNING


def _read_input_file(path: str) -> list[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [line.rstrip("\r\n") for line in f]


def _read_inputs(
    parsed: argparse.Namespace, file_inputs: list[str] | None, stdin: typing.TextIO
) -> typing.Iterator[str]:
    yield from parsed.inputs

    if file_inputs is not None:
        yield from file_inputs

    if not parsed.inputs and file_inputs is None:
        for line in stdin:
            yield line.rstrip("\r\n")


def _show(family: automaton.ItemSetFamily, views: list[str], out: typing.TextIO):
    summary = grammar.summarize(family.grammar)
    for view in views:
        match view:
            case "grammar":
                print(family.grammar.format(), file=out)
                print(
                    f"{len(summary.nonterminals)} nonterminals, "
                    f"{len(summary.terminals)} terminals, "
                    f"{summary.productions} productions",
                    file=out,
                )
            case "states":
                print("item sets:", file=out)
                print(family.format_states(), file=out)
            case "dfa":
                print("dfa:", file=out)
                print(family.format_dfa(), file=out)
            case "table":
                print("table:", file=out)
                print(family.format_table(), file=out)
            case _:
                raise ValueError(f"Unknown view {view!r}")
        print(file=out)


def make_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lrzero",
        description="Build the LR(0) automaton for a grammar and check strings against it",
    )
    parser.add_argument(
        "grammar",
        help="Path to a grammar file: one rule per line, the head character, a space, "
        "and then the body characters ('$' for an empty body).",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        help="Strings to check. If there are none (and no --input-file), strings are read "
        "from standard input, one per line.",
    )
    parser.add_argument(
        "--input-file",
        type=str,
        default=None,
        help="Path to a file of strings to check, one per line.",
    )
    parser.add_argument(
        "--show",
        action="append",
        choices=VIEWS,
        default=None,
        help="What to print before checking anything. Give it more than once to print more "
        "than one thing. The default is to print all of them.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print every step of the recognizer for every string.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more. Once for INFO, twice for DEBUG.",
    )
    return parser


def main(
    args: list[str],
    stdin: typing.TextIO | None = None,
    out: typing.TextIO | None = None,
    err: typing.TextIO | None = None,
) -> int:
    stdin = stdin if stdin is not None else sys.stdin
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr

    parsed = make_argument_parser().parse_args(args[1:])
    logging.basicConfig(level=_log_level(parsed.verbose), stream=err)

    try:
        gm = grammar.load_grammar(parsed.grammar)
    except (OSError, grammar.GrammarError) as e:
        print(f"{parsed.grammar}: {e}", file=err)
        return EXIT_BAD_GRAMMAR

    file_inputs = None
    if parsed.input_file is not None:
        try:
            file_inputs = _read_input_file(parsed.input_file)
        except OSError as e:
            print(f"{parsed.input_file}: {e}", file=err)
            return EXIT_BAD_INPUT

    views = parsed.show or list(VIEWS)
    family = automaton.build_automaton(gm).construct_states()
    _show(family, [v for v in views if v != "table"], out)

    try:
        family.compile_table()
    except table.NotLR0Error as e:
        print(str(e), file=err)
        return EXIT_BAD_GRAMMAR

    if "table" in views:
        _show(family, ["table"], out)

    result = EXIT_ACCEPTED
    for text in _read_inputs(parsed, file_inputs, stdin):
        recognition = family.run(text)
        if parsed.trace:
            print(runtime.format_trace(recognition), file=out)
        print(f"{text!r}: {recognition.verdict.value}", file=out)
        if not recognition.accepted:
            result = EXIT_REJECTED

    return result


def run():
    sys.exit(main(sys.argv))

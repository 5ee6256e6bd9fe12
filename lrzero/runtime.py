"""The shift-reduce machine that runs a compiled table over an input string."""

import dataclasses
import enum
import logging
import typing

from . import table
from .grammar import END, Grammar

if typing.TYPE_CHECKING:
    from .automaton import ItemSet


action_log = logging.getLogger("lrzero.action")


class Verdict(enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class CorruptTableError(Exception):
    """A reduction found no goto for its head.

    This can't happen with a table that compiled cleanly, so if you see it
    there's a bug in the table construction.
    """


@dataclasses.dataclass(frozen=True)
class TraceStep:
    symbols: str
    remaining: str
    states: typing.Tuple[int, ...]
    action: str


@dataclasses.dataclass
class Recognition:
    verdict: Verdict
    steps: list[TraceStep]
    # Where the read cursor was when we stopped.
    position: int

    @property
    def accepted(self) -> bool:
        return self.verdict == Verdict.ACCEPT


def _lookup(grammar: Grammar, text: str, cursor: int) -> int | None:
    """The symbol at the cursor, or None if it isn't one we know.

    The end marker only counts at the very end; one in the middle of the
    input is just a character we don't recognize.
    """
    if cursor == len(text):
        return grammar.end_symbol

    index = grammar.index_of(text[cursor])
    if index is None or index == grammar.end_symbol:
        return None
    return index


def recognize(grammar: Grammar, states: typing.Sequence["ItemSet"], text: str) -> Recognition:
    """Run the shift-reduce machine over `text`.

    There are two stacks that move together: the symbols we've seen (starting
    with the end marker) and the states we were in (starting with state 0).
    Each step looks up the top state and the symbol under the read cursor and
    does what the table says. The cursor only ever moves forward, and only
    when we shift.

    Running off the table is a normal way to stop; you get a REJECT back, not
    an exception.
    """
    symbol_stack: list[int] = [grammar.end_symbol]
    state_stack: list[int] = [0]
    cursor = 0
    steps: list[TraceStep] = []

    al = action_log
    while True:
        current_state = state_stack[-1]
        symbol = _lookup(grammar, text, cursor)

        action: table.TableEntry
        if symbol is None:
            action = table.Error()
        else:
            action = states[current_state].actions.get(symbol, table.Error())

        snapshot = (
            "".join(grammar.literal(s) for s in symbol_stack),
            text[cursor:] + END,
            tuple(state_stack),
        )

        match action:
            case table.Accept():
                verdict = Verdict.ACCEPT
                description = "acc"

            case table.Shift(state=next_state):
                assert symbol is not None
                symbol_stack.append(symbol)
                state_stack.append(next_state)
                cursor += 1
                verdict = None
                description = str(action)

            case table.Reduce(production=production):
                size = grammar.arity(production)
                if size > 0:
                    del symbol_stack[-size:]
                    del state_stack[-size:]

                head = grammar.production(production).head
                goto = states[state_stack[-1]].actions.get(head)
                if not isinstance(goto, table.Goto):
                    raise CorruptTableError(
                        f"No goto from state {state_stack[-1]} on "
                        f"{grammar.literal(head)!r} after reducing by "
                        f"{grammar.format_production(production)}"
                    )

                symbol_stack.append(head)
                state_stack.append(goto.state)
                verdict = None
                description = f"{action}, GOTO{goto.state}"

            case _:
                # Error, or a goto where we wanted an action; a goto can only
                # come up here if the input had a nonterminal in it.
                verdict = Verdict.REJECT
                description = "error"

        step = TraceStep(*snapshot, action=description)
        steps.append(step)
        if al.isEnabledFor(logging.INFO):
            al.info(
                "{symbols: <15} {remaining: <15} {states: <20} {action}".format(
                    symbols=step.symbols,
                    remaining=step.remaining,
                    states=" ".join(str(s) for s in step.states),
                    action=step.action,
                )
            )

        if verdict is not None:
            return Recognition(verdict=verdict, steps=steps, position=cursor)


def format_trace(recognition: Recognition) -> str:
    """Format the steps of a run as a table."""
    symbols_width = max([len("symbols")] + [len(s.symbols) for s in recognition.steps])
    input_width = max([len("input")] + [len(s.remaining) for s in recognition.steps])
    states_width = max(
        [len("states")] + [len(" ".join(str(x) for x in s.states)) for s in recognition.steps]
    )

    def row(symbols: str, remaining: str, states: str, action: str) -> str:
        return "{0: <{sw}}  {1: >{iw}}  {2: <{tw}}  {3}".format(
            symbols,
            remaining,
            states,
            action,
            sw=symbols_width,
            iw=input_width,
            tw=states_width,
        ).rstrip()

    lines = [row("symbols", "input", "states", "action")]
    for step in recognition.steps:
        lines.append(
            row(step.symbols, step.remaining, " ".join(str(s) for s in step.states), step.action)
        )
    lines.append(recognition.verdict.value)
    return "\n".join(lines)

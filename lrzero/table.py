"""Compiling item sets into a parse table.

Every state gets one row, and every row has one entry for every symbol in the
symbol table except the augmenting one. An entry is exactly one of:

- `Shift(n)`: consume the input symbol and push state `n`.
- `Goto(n)`: after a reduction to this nonterminal, push state `n`.
- `Reduce(p)`: pop the body of production `p` and replace it with its head.
- `Accept()`: the input is in the language.
- `Error()`: the input is not.

An LR(0) table makes its decisions without looking at the next symbol, which
means a state is either a state that shifts or a state that reduces by one
production, never both and never by two. Anything else and the grammar is not
LR(0).
"""

import dataclasses
import logging
import typing

from .grammar import Grammar, SymbolKind

if typing.TYPE_CHECKING:
    from .automaton import ItemSet

table_log = logging.getLogger("lrzero.table")


@dataclasses.dataclass(frozen=True)
class Action:
    pass


@dataclasses.dataclass(frozen=True)
class Shift(Action):
    state: int

    def __str__(self):
        return f"s{self.state}"


@dataclasses.dataclass(frozen=True)
class Goto(Action):
    state: int

    def __str__(self):
        return str(self.state)


@dataclasses.dataclass(frozen=True)
class Reduce(Action):
    production: int

    def __str__(self):
        return f"r{self.production}"


@dataclasses.dataclass(frozen=True)
class Accept(Action):
    def __str__(self):
        return "acc"


@dataclasses.dataclass(frozen=True)
class Error(Action):
    def __str__(self):
        return "err"


TableEntry = Shift | Goto | Reduce | Accept | Error


REDUCE_REDUCE = "reduce-reduce"
SHIFT_REDUCE = "shift-reduce"
ACCEPT_REDUCE = "accept-reduce"


@dataclasses.dataclass(frozen=True)
class Conflict:
    """Where and why a grammar isn't LR(0)."""

    state: int
    kind: str
    items: typing.Tuple[str, ...]
    # The symbols that lead from the initial state to the broken one.
    path: str

    def __str__(self):
        lines = [
            f"State {self.state} has a {self.kind} conflict. "
            f"When we have seen '{self.path}' we could be in any of:"
        ]
        lines.extend(f"- {item}" for item in self.items)
        return "\n".join(lines)


class NotLR0Error(Exception):
    conflict: Conflict

    def __init__(self, conflict: Conflict):
        super().__init__(conflict)
        self.conflict = conflict

    @property
    def state(self) -> int:
        return self.conflict.state

    def __str__(self):
        return f"The grammar is not LR(0).\n\n{self.conflict}"


def conflict_kind(state: "ItemSet", grammar: Grammar) -> str | None:
    """Return the kind of conflict in the state, or None if it's fine.

    More than one completed item means we can't pick which one to reduce.
    One completed item alongside anything else means we can't pick between
    reducing and doing the other thing.
    """
    completed = state.completed(grammar)
    if len(completed) > 1:
        return REDUCE_REDUCE
    if len(completed) == 1 and len(state) > 1:
        others = [item for item in state if item != completed[0]]
        if all(item.at_end(grammar) for item in others):
            return ACCEPT_REDUCE
        return SHIFT_REDUCE
    return None


def compile_row(state: "ItemSet", grammar: Grammar) -> dict[int, TableEntry]:
    """Decide what the state does on every symbol.

    The state must already be known to be conflict free. This doesn't touch
    the state at all, it just returns the row.
    """
    row: dict[int, TableEntry] = {}
    end = grammar.end_symbol

    if len(state.transitions) == 0:
        # Nothing to shift, so we reduce (or accept, if this is the end of
        # the augmenting production).
        completed = state.completed(grammar)
        production = completed[0].production if completed else state.items[0].production

        for index, symbol in enumerate(grammar.symbols):
            if index == 0:
                continue
            if symbol.kind == SymbolKind.NONTERMINAL:
                row[index] = Error()
            elif production != 0:
                row[index] = Reduce(production)
            elif index == end:
                row[index] = Accept()
            else:
                row[index] = Error()

    else:
        # NOTE: Only states without transitions ever accept. A state holding
        #       `@ -> S ·` next to `S -> S · x` (a left-recursive start
        #       symbol) errors on the end marker.
        for index, symbol in enumerate(grammar.symbols):
            if index == 0:
                continue
            dest = state.transitions.get(index)
            if symbol.kind == SymbolKind.NONTERMINAL:
                row[index] = Error() if dest is None else Goto(dest)
            elif dest is not None:
                row[index] = Shift(dest)
            else:
                row[index] = Error()

    if table_log.isEnabledFor(logging.DEBUG):
        table_log.debug(
            "row: %s",
            " ".join(f"{grammar.literal(sym)}={entry}" for sym, entry in row.items()),
        )
    return row


def format_table(grammar: Grammar, states: typing.Sequence["ItemSet"]) -> str:
    """Format the table so pretty: one column per symbol, one row per state."""
    columns = [index for index in range(1, len(grammar.symbols))]

    header = "     | " + " ".join(f"{grammar.literal(c): <5}" for c in columns)
    lines = [header, "-" * len(header)]
    for index, state in enumerate(states):
        cells = " ".join(
            "{0: <5}".format(str(state.actions.get(c, Error()))) for c in columns
        )
        lines.append(f"{index: <4} | {cells}")
    return "\n".join(lines)

"""Build LR(0) parse tables for small single-character grammars, and use them
to recognize strings.

    grammar = build_grammar([("S", "AB"), ("A", "a"), ("B", "b")])
    automaton = build_automaton(grammar).construct_states()
    automaton.compile_table()
    automaton.run("ab").accepted  # True

See the `lrzero.grammar` module for the textual grammar format.
"""

from . import automaton
from . import grammar
from . import runtime
from . import table

from .automaton import Item, ItemSet, ItemSetFamily, build_automaton
from .grammar import (
    Grammar,
    GrammarError,
    Production,
    Symbol,
    SymbolKind,
    build_grammar,
    classify,
    load_grammar,
    parse_rules,
)
from .runtime import CorruptTableError, Recognition, TraceStep, Verdict, format_trace
from .table import Accept, Conflict, Error, Goto, NotLR0Error, Reduce, Shift, TableEntry

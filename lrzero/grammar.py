"""Grammars made of single-character symbols.

A grammar here is about as simple as a grammar can get: every symbol is one
character, uppercase ASCII letters are nonterminals, and everything else is a
terminal. Two characters are special: `$` stands for "nothing" (the body of an
epsilon production) and `#` marks the end of the input. A third, `@`, is the
synthetic start symbol we add to every grammar; you can't use it yourself.

The textual format is one rule per line, the head, some spaces, then the body:

    S AB
    A a
    B b
    B $

The first rule's head is the start symbol of the grammar.
"""

import dataclasses
import enum
import pathlib
import typing

AUGMENT = "@"
VOID = "$"
END = "#"


class GrammarError(ValueError):
    """The grammar (or the text describing it) is malformed."""


class SymbolKind(enum.Enum):
    VOID = 0
    END = 1
    TERMINAL = 2
    NONTERMINAL = 3


def classify(c: str) -> SymbolKind:
    """Decide what kind of symbol the character `c` is."""
    if "A" <= c <= "Z":
        return SymbolKind.NONTERMINAL
    elif c == VOID:
        return SymbolKind.VOID
    elif c == END:
        return SymbolKind.END
    else:
        return SymbolKind.TERMINAL


class Symbol(typing.NamedTuple):
    kind: SymbolKind
    literal: str

    @classmethod
    def from_char(cls, c: str) -> "Symbol":
        return Symbol(kind=classify(c), literal=c)

    @property
    def is_nonterminal(self) -> bool:
        return self.kind == SymbolKind.NONTERMINAL

    @property
    def is_void(self) -> bool:
        return self.kind == SymbolKind.VOID

    def __str__(self) -> str:
        return self.literal


class Production(typing.NamedTuple):
    """A single rule, `head -> body`, in terms of symbol table indices."""

    head: int
    body: typing.Tuple[int, ...]


class Grammar:
    """The symbol table and the list of productions.

    Both are indexed by position and neither ever shrinks; everything else in
    the system refers to symbols and productions by index.
    """

    symbols: list[Symbol]
    productions: list[Production]

    # Maps a literal character back to its index in `symbols`.
    _symbol_key: dict[str, int]

    def __init__(self):
        self.symbols = []
        self.productions = []
        self._symbol_key = {}

        # NOTE: The augmenting production always points at index 1, which is
        #       whatever the first rule's head turns out to be. build_grammar
        #       checks that it really is a nonterminal.
        self._add_symbol(Symbol(SymbolKind.NONTERMINAL, AUGMENT))
        self.productions.append(Production(head=0, body=(1,)))

    def _add_symbol(self, symbol: Symbol) -> int:
        existing = self._symbol_key.get(symbol.literal)
        if existing is not None:
            return existing

        index = len(self.symbols)
        self.symbols.append(symbol)
        self._symbol_key[symbol.literal] = index
        return index

    def register(self, c: str) -> int:
        """Return the index of the symbol for `c`, adding it if it's new."""
        return self._add_symbol(Symbol.from_char(c))

    def add_production(self, head: str, body: typing.Iterable[str]) -> int:
        head_index = self.register(head)
        body_indices = tuple(self.register(c) for c in body)
        self.productions.append(Production(head=head_index, body=body_indices))
        return len(self.productions) - 1

    def finish(self):
        """Register the end-of-input symbol. Call this after the last rule."""
        self.register(END)

    def index_of(self, c: str) -> int | None:
        """The index of the symbol for `c`, or None if there isn't one.

        The augmenting symbol is never a match: it does not appear in any
        input and asking for it is always a mistake.
        """
        if c == AUGMENT:
            return None
        return self._symbol_key.get(c)

    def resolve_index(self, c: str) -> int:
        """Like `index_of`, but returns 0 when the symbol isn't found.

        Index 0 is the augmenting symbol, which nothing ever legitimately
        looks up, so callers can treat it as "not found".
        """
        index = self.index_of(c)
        return 0 if index is None else index

    def symbol(self, index: int) -> Symbol:
        return self.symbols[index]

    def literal(self, index: int) -> str:
        return self.symbols[index].literal

    def production(self, index: int) -> Production:
        return self.productions[index]

    def is_nonterminal(self, index: int) -> bool:
        return self.symbols[index].is_nonterminal

    def is_void(self, index: int) -> bool:
        return self.symbols[index].is_void

    def arity(self, production: int) -> int:
        """The number of stack entries a reduction by `production` consumes.

        This is the length of the body, `$` included: `A -> $` pops one. A
        state reducing by an epsilon production always conflicts, so that
        reduction never makes it into a compiled table.
        """
        return len(self.productions[production].body)

    @property
    def start_symbol(self) -> int:
        return 1

    @property
    def end_symbol(self) -> int:
        index = self._symbol_key.get(END)
        assert index is not None, "Grammar was never finished"
        return index

    def format_production(self, index: int) -> str:
        production = self.productions[index]
        return "{head}->{body}".format(
            head=self.literal(production.head),
            body="".join(self.literal(s) for s in production.body),
        )

    def format(self) -> str:
        lines = ["symbol table: " + " ".join(s.literal for s in self.symbols)]
        lines.append("productions:")
        lines.extend(
            f"  {i}: {self.format_production(i)}" for i in range(len(self.productions))
        )
        return "\n".join(lines)


Rule = typing.Tuple[str, str | typing.Sequence[str]]


def _check_rule(line: int, head: str, body: str | typing.Sequence[str]):
    where = f"rule {line}"
    if len(head) != 1:
        raise GrammarError(f"{where}: the head must be a single character, not {head!r}")
    if head in (AUGMENT, END, VOID):
        raise GrammarError(f"{where}: can't use {head!r} as a head, it's reserved")
    if len(body) == 0:
        raise GrammarError(f"{where}: empty body for {head!r} (write {VOID!r} for epsilon)")

    for c in body:
        if len(c) != 1:
            raise GrammarError(f"{where}: body symbols are single characters, not {c!r}")
        if c.isspace():
            raise GrammarError(f"{where}: whitespace in the body of {head!r}")
        if c in (AUGMENT, END):
            raise GrammarError(f"{where}: can't use {c!r} in a body, it's reserved")
        if c == VOID and len(body) != 1:
            raise GrammarError(f"{where}: {VOID!r} must be the only symbol in an epsilon body")


def build_grammar(rules: typing.Iterable[Rule]) -> Grammar:
    """Build a grammar from (head, body) pairs.

    The augmenting production `@ -> S` is always production 0, and `S` is the
    head of the first rule. Only the shape of each rule is checked here; a
    grammar that is wrong in more interesting ways (a nonterminal with no
    productions, say) shows up later when we build the table.
    """
    grammar = Grammar()
    count = 0
    for count, (head, body) in enumerate(rules, start=1):
        _check_rule(count, head, body)
        if count == 1 and classify(head) != SymbolKind.NONTERMINAL:
            raise GrammarError(
                f"rule 1: the start symbol {head!r} must be a nonterminal (an uppercase letter)"
            )
        grammar.add_production(head, body)

    if count == 0:
        raise GrammarError("The grammar has no rules")

    assert grammar.symbols[grammar.start_symbol].is_nonterminal
    grammar.finish()
    return grammar


def parse_rules(text: str) -> list[typing.Tuple[str, str]]:
    """Split the textual form of a grammar into (head, body) pairs."""
    rules = []
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.rstrip()
        if not line:
            continue

        head, sep, body = line.partition(" ")
        body = body.lstrip(" ")
        if not sep or not body:
            raise GrammarError(f"line {number}: expected 'HEAD BODY', got {line!r}")
        if len(head) != 1:
            raise GrammarError(f"line {number}: the head must be a single character, not {head!r}")

        rules.append((head, body))

    return rules


def load_grammar(path: str | pathlib.Path) -> Grammar:
    """Read and build the grammar in the file at `path`."""
    text = pathlib.Path(path).read_text(encoding="utf-8")
    return build_grammar(parse_rules(text))


@dataclasses.dataclass(frozen=True)
class GrammarSummary:
    terminals: typing.Tuple[str, ...]
    nonterminals: typing.Tuple[str, ...]
    productions: int


def summarize(grammar: Grammar) -> GrammarSummary:
    """Count things up, for the command line to show."""
    terminals = tuple(
        s.literal for s in grammar.symbols if s.kind in (SymbolKind.TERMINAL, SymbolKind.END)
    )
    nonterminals = tuple(s.literal for s in grammar.symbols[1:] if s.is_nonterminal)
    return GrammarSummary(
        terminals=terminals,
        nonterminals=nonterminals,
        productions=len(grammar.productions),
    )

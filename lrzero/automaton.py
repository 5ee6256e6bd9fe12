"""The LR(0) automaton: items, item sets, and the family of item sets.

The family is an arena. States live in one list, in the order we discovered
them, and everything that refers to a state (transitions, shift and goto
entries in the table) does so by index. State 0 is always the closure of the
augmenting item `@ -> * S`.
"""

import collections
import logging
import typing

from . import runtime
from . import table
from .grammar import Grammar

build_log = logging.getLogger("lrzero.build")


class Item(typing.NamedTuple):
    """A position within a production: how much of the body we've seen.

    Items are tiny and immutable, and two items are the same item if they
    have the same production and the same dot position.
    """

    production: int
    dot: int

    def at_end(self, grammar: Grammar) -> bool:
        """True if there is nothing left to match.

        An epsilon production (`A -> $`) is at the end immediately, since the
        only thing under the dot is the void marker.
        """
        body = grammar.production(self.production).body
        if self.dot == len(body):
            return True
        return grammar.is_void(body[self.dot])

    def next_symbol(self, grammar: Grammar) -> int:
        """The symbol right after the dot. Only call this if not at_end."""
        return grammar.production(self.production).body[self.dot]

    def advance(self) -> "Item":
        return Item(self.production, self.dot + 1)

    def format(self, grammar: Grammar) -> str:
        production = grammar.production(self.production)
        bits = []
        for i, sym in enumerate(production.body):
            if grammar.is_void(sym):
                break
            if i == self.dot:
                bits.append("·")
            bits.append(grammar.literal(sym))
        if self.at_end(grammar):
            bits.append("·")
        return "{head}->{body}".format(head=grammar.literal(production.head), body="".join(bits))


class ItemSet:
    """A state of the automaton: a set of distinct items.

    The items are kept in the order they were added so that printing and
    numbering are repeatable, but equality ignores that order. Once the state
    is part of a family it also knows where it goes on each symbol
    (`transitions`) and, after the table is compiled, what to do on each
    symbol (`actions`).
    """

    items: list[Item]
    transitions: dict[int, int]
    actions: dict[int, table.TableEntry]

    _members: set[Item]

    def __init__(self, items: typing.Iterable[Item] = ()):
        self.items = []
        self._members = set()
        self.transitions = {}
        self.actions = {}
        for item in items:
            self.add(item)

    def add(self, item: Item) -> bool:
        """Add the item, returning True if it wasn't already here."""
        if item in self._members:
            return False
        self._members.add(item)
        self.items.append(item)
        return True

    def __contains__(self, item: Item) -> bool:
        return item in self._members

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> typing.Iterator[Item]:
        return iter(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemSet):
            return NotImplemented
        return len(self.items) == len(other.items) and self._members == other._members

    __hash__ = None  # type: ignore

    def key(self) -> frozenset[Item]:
        return frozenset(self._members)

    def close(self, grammar: Grammar) -> "ItemSet":
        """Expand this set, in place, into its closure, and return it.

        If the dot in an item is right before a nonterminal then we could
        also be at the very start of any production for that nonterminal, so
        those items go in too. We only ever add items, so we just keep
        walking the list until we run out of new ones.
        """
        expanded: set[int] = set()
        index = 0
        while index < len(self.items):
            item = self.items[index]
            index += 1
            if item.at_end(grammar):
                continue

            symbol = item.next_symbol(grammar)
            if not grammar.is_nonterminal(symbol) or symbol in expanded:
                continue

            expanded.add(symbol)
            for production_index, production in enumerate(grammar.productions):
                if production.head == symbol:
                    self.add(Item(production_index, 0))

        return self

    def move_map(self, grammar: Grammar) -> dict[int, "ItemSet"]:
        """Compute the candidate successor of this set on every symbol.

        The result maps each symbol that appears after a dot to the closure of
        the items you get by stepping over that symbol. Symbols show up in the
        order we first see them, which keeps state numbering deterministic.
        These sets aren't deduplicated against anything; that's the family's
        job.
        """
        moves: dict[int, ItemSet] = {}
        for item in self.items:
            if item.at_end(grammar):
                continue

            symbol = item.next_symbol(grammar)
            successor = moves.get(symbol)
            if successor is None:
                successor = ItemSet()
                moves[symbol] = successor
            successor.add(item.advance())

        for successor in moves.values():
            successor.close(grammar)
        return moves

    def completed(self, grammar: Grammar) -> list[Item]:
        """The items that are ready to reduce (excluding the augmenting one)."""
        return [
            item
            for item in self.items
            if item.at_end(grammar) and grammar.production(item.production).head != 0
        ]

    def format(self, grammar: Grammar) -> list[str]:
        return [item.format(grammar) for item in self.items]


class ItemSetFamily:
    """The canonical collection of LR(0) item sets for a grammar.

    Make one with `build_automaton`, then call `construct_states`, then
    `compile_table`, and then you can `run` it on as many strings as you
    like. Each step needs the previous one to have finished.
    """

    grammar: Grammar
    states: list[ItemSet]
    compiled: bool

    # Maps the items of every state to that state's index, so we can find
    # out quickly if a candidate state is one we already have.
    _state_key: dict[frozenset[Item], int]

    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self.states = []
        self.compiled = False
        self._state_key = {}

    def _register(self, item_set: ItemSet) -> typing.Tuple[int, bool]:
        """Find or add the state, returning its index and whether it was new."""
        key = item_set.key()
        existing = self._state_key.get(key)
        if existing is not None:
            return existing, False

        index = len(self.states)
        self.states.append(item_set)
        self._state_key[key] = index
        return index, True

    def initial_state(self) -> ItemSet:
        return ItemSet([Item(0, 0)]).close(self.grammar)

    def construct_states(self) -> "ItemSetFamily":
        """Build every state reachable from the initial one.

        This throws away anything we built before.
        """
        self.states = []
        self.compiled = False
        self._state_key = {}

        bl = build_log
        self._register(self.initial_state())
        index = 0
        while index < len(self.states):
            state = self.states[index]
            for symbol, candidate in state.move_map(self.grammar).items():
                successor, is_new = self._register(candidate)
                state.transitions[symbol] = successor
                if is_new and bl.isEnabledFor(logging.DEBUG):
                    bl.debug(
                        "I%d --%s--> I%d: %s",
                        index,
                        self.grammar.literal(symbol),
                        successor,
                        ", ".join(candidate.format(self.grammar)),
                    )
            index += 1

        bl.info(
            "built %d states for %d productions", len(self.states), len(self.grammar.productions)
        )
        return self

    def index_of(self, item_set: ItemSet) -> int | None:
        return self._state_key.get(item_set.key())

    def find_path_to_state(self, target: int) -> list[int]:
        """Trace the symbols that take us from state 0 to the target state.

        This is for conflict reporting: we're *at* a broken state and want to
        show how you get there. Raises KeyError if there's no path.
        """
        visited = set()
        queue: collections.deque = collections.deque()
        queue.appendleft((0, []))
        while len(queue) > 0:
            index, path = queue.pop()
            if index == target:
                return path

            if index in visited:
                continue
            visited.add(index)

            for symbol, successor in self.states[index].transitions.items():
                queue.appendleft((successor, path + [symbol]))

        raise KeyError(f"Unable to find a path to state {target}!")

    def compile_table(self):
        """Fill in the action row of every state.

        Raises NotLR0Error at the first state that needs more than one action
        for some symbol. In that case no state gets a row at all; a partial
        table is no use to anybody.
        """
        if len(self.states) == 0:
            raise ValueError("The states have not been constructed yet")

        rows = []
        for index, state in enumerate(self.states):
            kind = table.conflict_kind(state, self.grammar)
            if kind is not None:
                path = self.find_path_to_state(index)
                raise table.NotLR0Error(
                    table.Conflict(
                        state=index,
                        kind=kind,
                        items=tuple(state.format(self.grammar)),
                        path="".join(self.grammar.literal(s) for s in path),
                    )
                )
            rows.append(table.compile_row(state, self.grammar))

        for state, row in zip(self.states, rows):
            state.actions = row
        self.compiled = True
        table.table_log.info("compiled a table with %d rows", len(rows))

    def run(self, text: str) -> runtime.Recognition:
        """Run the recognizer over `text`. See `runtime.recognize`."""
        if not self.compiled:
            raise ValueError("The table has not been compiled yet")
        return runtime.recognize(self.grammar, self.states, text)

    def accepts(self, text: str) -> bool:
        return self.run(text).accepted

    def format_states(self) -> str:
        lines = []
        for index, state in enumerate(self.states):
            lines.append(f"I{index}:")
            lines.extend(f"  {item}" for item in state.format(self.grammar))
        return "\n".join(lines)

    def format_dfa(self) -> str:
        lines = []
        for index, state in enumerate(self.states):
            edges = " ".join(
                f"|{self.grammar.literal(symbol)}->{dest}|"
                for symbol, dest in state.transitions.items()
            )
            lines.append(f"{index}: {edges}".rstrip())
        return "\n".join(lines)

    def format_table(self) -> str:
        return table.format_table(self.grammar, self.states)


def build_automaton(grammar: Grammar) -> ItemSetFamily:
    """Wrap a finished grammar in an (as yet empty) automaton."""
    return ItemSetFamily(grammar)

import pytest

from hypothesis import given

from lrzero import (
    Accept,
    Error,
    Goto,
    NotLR0Error,
    Reduce,
    Shift,
    build_automaton,
    build_grammar,
)
from lrzero.table import ACCEPT_REDUCE, REDUCE_REDUCE, SHIFT_REDUCE

from test_automaton import grammars, make_family


def compiled(rules):
    family = make_family(rules)
    family.compile_table()
    return family


def row(family, state: int) -> dict[str, object]:
    g = family.grammar
    return {g.literal(symbol): entry for symbol, entry in family.states[state].actions.items()}


def test_simple_table():
    family = compiled([("S", "AB"), ("A", "a"), ("B", "b")])

    assert row(family, 0) == {
        "S": Goto(1),
        "A": Goto(2),
        "B": Error(),
        "a": Shift(3),
        "b": Error(),
        "#": Error(),
    }
    assert row(family, 1) == {
        "S": Error(),
        "A": Error(),
        "B": Error(),
        "a": Error(),
        "b": Error(),
        "#": Accept(),
    }
    assert row(family, 2)["B"] == Goto(4)
    assert row(family, 2)["b"] == Shift(5)
    assert row(family, 3) == {
        "S": Error(),
        "A": Error(),
        "B": Error(),
        "a": Reduce(2),
        "b": Reduce(2),
        "#": Reduce(2),
    }
    assert row(family, 4)["#"] == Reduce(1)
    assert row(family, 5)["#"] == Reduce(3)


def test_format_table():
    family = compiled([("S", "AB"), ("A", "a"), ("B", "b")])

    lines = family.format_table().splitlines()
    assert lines[0].split() == ["|", "S", "A", "B", "a", "b", "#"]
    assert lines[2].split() == ["0", "|", "1", "2", "err", "s3", "err", "err"]
    assert lines[3].split() == ["1", "|", "err", "err", "err", "err", "err", "acc"]
    assert lines[5].split() == ["3", "|", "err", "err", "err", "r2", "r2", "r2"]


def test_left_recursive_start_errors_on_end():
    """The state after E holds both `@ -> E ·` and `E -> E · + T`. It has
    somewhere to go, so it shifts `+` and errors on everything else,
    including the end marker."""
    family = compiled([("E", "E+T"), ("E", "T"), ("T", "(E)"), ("T", "i")])

    g = family.grammar
    state = family.states[0].transitions[g.resolve_index("E")]
    assert family.states[state].format(g) == ["@->E·", "E->E·+T"]
    assert row(family, state)["#"] == Error()
    assert isinstance(row(family, state)["+"], Shift)
    assert Accept() not in row(family, state).values()


def test_reduce_reduce_conflict():
    family = make_family([("S", "A"), ("S", "B"), ("A", "a"), ("B", "a")])

    with pytest.raises(NotLR0Error) as e:
        family.compile_table()

    conflict = e.value.conflict
    assert conflict.kind == REDUCE_REDUCE
    assert conflict.state == 4
    assert e.value.state == 4
    assert conflict.path == "a"
    assert set(conflict.items) == {"A->a·", "B->a·"}
    assert "not LR(0)" in str(e.value)


def test_shift_reduce_conflict():
    family = make_family([("S", "a"), ("S", "ab")])

    with pytest.raises(NotLR0Error) as e:
        family.compile_table()

    assert e.value.conflict.kind == SHIFT_REDUCE
    assert e.value.conflict.state == 2
    assert e.value.conflict.path == "a"


def test_epsilon_conflicts():
    family = make_family([("S", "Ab"), ("A", "$")])

    with pytest.raises(NotLR0Error) as e:
        family.compile_table()

    assert e.value.conflict.kind == SHIFT_REDUCE
    assert e.value.conflict.state == 0
    assert e.value.conflict.path == ""


def test_accept_reduce_conflict():
    # After S we could be done, or we could reduce S -> S.
    family = make_family([("S", "S"), ("S", "a")])

    with pytest.raises(NotLR0Error) as e:
        family.compile_table()

    assert e.value.conflict.kind == ACCEPT_REDUCE


def test_failed_compile_writes_nothing():
    family = make_family([("S", "A"), ("S", "B"), ("A", "a"), ("B", "a")])

    with pytest.raises(NotLR0Error):
        family.compile_table()

    assert not family.compiled
    assert all(state.actions == {} for state in family.states)


def test_compile_before_construct():
    family = build_automaton(build_grammar([("S", "a")]))

    with pytest.raises(ValueError):
        family.compile_table()


@given(grammars())
def test_table_is_total(rules):
    family = make_family(rules)
    try:
        family.compile_table()
    except NotLR0Error:
        # Not LR(0); there is no table to check.
        return

    expected = set(range(1, len(family.grammar.symbols)))
    for state in family.states:
        assert set(state.actions.keys()) == expected
        for symbol, entry in state.actions.items():
            if family.grammar.is_nonterminal(symbol):
                assert isinstance(entry, (Goto, Error))
            else:
                assert isinstance(entry, (Shift, Reduce, Accept, Error))


@given(grammars())
def test_conflicts_are_found(rules):
    """Every state with two completed items, or a completed item and
    something else, must stop compilation."""
    family = make_family(rules)
    g = family.grammar

    broken = [
        index
        for index, state in enumerate(family.states)
        if len(state.completed(g)) > 1 or (len(state.completed(g)) == 1 and len(state) > 1)
    ]

    if broken:
        with pytest.raises(NotLR0Error) as e:
            family.compile_table()
        assert e.value.state == broken[0]
    else:
        family.compile_table()
        assert family.compiled

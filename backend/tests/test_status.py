"""Tests for state reduction."""

from __future__ import annotations

import itertools

import pytest

from transformation_tracker.models.status import State

I, S, F, U = State.IN_PROGRESS, State.SUCCESSFUL, State.FAILED, State.UNKNOWN

EXPECTED = {
    (I, I): I, (I, S): I, (I, F): I, (I, U): I,
    (S, I): I, (S, S): S, (S, F): F, (S, U): U,
    (F, I): I, (F, S): F, (F, F): F, (F, U): U,
    (U, I): I, (U, S): U, (U, F): U, (U, U): U,
}


@pytest.mark.parametrize("pair", sorted(EXPECTED, key=lambda p: (p[0].value, p[1].value)))
def test_reduce_table(pair: tuple[State, State]) -> None:
    a, b = pair
    assert State.reduce(a, b) is EXPECTED[pair]


def test_reduce_is_symmetric() -> None:
    for a, b in itertools.product(State, repeat=2):
        assert State.reduce(a, b) is State.reduce(b, a)


def test_fold_of_nothing_is_in_progress() -> None:
    assert State.fold([]) is State.IN_PROGRESS


def test_fold_ignores_order() -> None:
    states = [S, F, S, U]
    for ordering in itertools.permutations(states):
        assert State.fold(ordering) is U
    assert State.fold(iter([S, S])) is S


def test_terminal_states() -> None:
    assert {state for state in State if state.is_terminal} == {S, F}

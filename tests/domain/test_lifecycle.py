"""Tests for decoration states."""

import pytest

from dapi.domain.lifecycle import DecorationState, compute_decoration_state


class TestDecorationState:
    def test_members(self) -> None:
        assert {s.value for s in DecorationState} == {"undecorated", "decorated"}

    def test_members_are_strings(self) -> None:
        assert DecorationState.DECORATED == "decorated"


class TestComputeDecorationState:
    @pytest.mark.parametrize(
        ("decorators", "hooks", "expected"),
        [
            (0, 0, DecorationState.UNDECORATED),
            (1, 0, DecorationState.DECORATED),
            (0, 2, DecorationState.DECORATED),
            (3, 1, DecorationState.DECORATED),
        ],
    )
    def test_state(self, decorators: int, hooks: int, expected: DecorationState) -> None:
        assert compute_decoration_state(decorators, hooks) is expected

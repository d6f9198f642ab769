""" Finite-state machine for the operating modes of a component.

Each component owns its mode enumeration and its transition table. The machine only
checks that a requested transition is listed and keeps the time spent in the current mode.
"""
# clean
from __future__ import annotations

import enum
from typing import Dict, FrozenSet, Generic, TypeVar

ModeT = TypeVar("ModeT", bound=enum.IntEnum)


class IllegalTransitionError(ValueError):

    """A component tried to move into a mode that is not reachable from its current mode."""


class ModeStateMachine(Generic[ModeT]):

    """Operating mode with an explicit transition table."""

    def __init__(self, initial_mode: ModeT, transitions: Dict[ModeT, FrozenSet[ModeT]], owner_name: str) -> None:
        """Initializes the machine in the initial mode."""
        self.transitions = transitions
        self.owner_name = owner_name
        self.mode: ModeT = initial_mode
        self.seconds_in_mode: float = 0.0

    def can_transition(self, new_mode: ModeT) -> bool:
        """Checks if the transition is listed, staying in the current mode is always allowed."""
        return new_mode == self.mode or new_mode in self.transitions.get(self.mode, frozenset())

    def transition(self, new_mode: ModeT, seconds_per_timestep: float) -> None:
        """Moves to the new mode at the end of a timestep."""
        if not self.can_transition(new_mode):
            raise IllegalTransitionError(
                f"{self.owner_name}: transition from {self.mode.name} to {new_mode.name} is not allowed."
            )
        if new_mode == self.mode:
            self.seconds_in_mode += seconds_per_timestep
        else:
            self.mode = new_mode
            self.seconds_in_mode = seconds_per_timestep

    def clone(self) -> ModeStateMachine[ModeT]:
        """Copies the current instance, the transition table is shared."""
        copy = ModeStateMachine(self.mode, self.transitions, self.owner_name)
        copy.seconds_in_mode = self.seconds_in_mode
        return copy

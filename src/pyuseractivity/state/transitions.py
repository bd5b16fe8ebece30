"""Declarative group transitions."""

from __future__ import annotations

from collections.abc import Iterable

from pyuseractivity.models.descriptor import Transition


def evaluate(transitions: Iterable[Transition], current: str | None) -> Transition | None:
    """Return the first transition applicable to a group whose active type is *current*.

    A transition applies when its ``from`` equals *current*; one without
    ``from`` applies only while nothing is active. List order breaks ties.
    """
    for transition in transitions:
        if transition.from_type == current:
            return transition
    return None

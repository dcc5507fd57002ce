#!/usr/bin/env python

import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .scenes import LAST_SCENE_INDEX, Payload, build_scene

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneState:
    index: int = 0

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Scene index must be non-negative, got {self.index}")


@dataclass(frozen=True)
class Affordances:
    previous_enabled: bool
    next_enabled: bool


@dataclass(frozen=True)
class SceneView:
    state: SceneState
    payload: Payload
    affordances: Affordances


def next_scene(state: SceneState) -> SceneState:
    # No upper clamp: indexes past the last scene render the placeholder.
    return SceneState(state.index + 1)


def previous_scene(state: SceneState) -> SceneState:
    return SceneState(max(0, state.index - 1))


def affordances(state: SceneState) -> Affordances:
    """Previous is off on the first scene, Next is off on the last real scene."""
    return Affordances(
        previous_enabled=state.index != 0,
        next_enabled=state.index != LAST_SCENE_INDEX,
    )


class SceneNavigator:
    """Holds the current scene and rebuilds its payload on every transition.

    The normalized frame is kept by reference and shared with every builder.
    """
    def __init__(self, df: Optional[pd.DataFrame], state: SceneState = SceneState()):
        if df is None:
            raise ValueError("SceneNavigator needs a loaded dataset.")
        self.df = df
        self.state = state

    def current(self) -> SceneView:
        payload = build_scene(self.state.index, self.df)
        return SceneView(self.state, payload, affordances(self.state))

    def _go(self, state: SceneState) -> SceneView:
        logger.debug("Scene %d -> %d", self.state.index, state.index)
        self.state = state
        return self.current()

    def advance(self) -> SceneView:
        return self._go(next_scene(self.state))

    def retreat(self) -> SceneView:
        return self._go(previous_scene(self.state))

    def jump_to(self, index: int) -> SceneView:
        return self._go(SceneState(index))

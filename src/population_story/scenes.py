#!/usr/bin/env python
"""Scene builders: one pure function per narrative scene.

Each builder takes the normalized population frame held by DataAnalyzer and
returns a payload the front ends can draw without touching the data again.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import pandas as pd

from .data_analyzer import (
    END_YEAR, LAST_ESTIMATE_YEAR, REGIONS, START_YEAR, WORLD,
    Observation, fastest_growing, select_series, slowest_growing,
)

BILLION = 1e9
MILLION = 1e6

# End-of-line label fixups for the region chart. These two labels collide
# with their neighbours at 2100; everything else stays where the line ends.
LABEL_OFFSETS: Dict[str, int] = {
    "Latin America": -12,
    "Northern America": 6,
}


@dataclass(frozen=True)
class Series:
    name: str
    values: Tuple[Observation, ...]
    growth_rate: Optional[float] = None

    @property
    def last(self) -> Optional[Observation]:
        return self.values[-1] if self.values else None

    def population_at(self, year: int) -> Optional[float]:
        for obs in self.values:
            if obs.year == year:
                return obs.population
        return None

    @property
    def legend_label(self) -> str:
        if self.growth_rate is None:
            return self.name
        return f"{self.name} ({self.growth_rate:+.1%})"


@dataclass(frozen=True)
class Annotation:
    anchor_year: int
    anchor_entity: str
    label: str
    title: str
    offset: Tuple[int, int]
    anchor_population: Optional[float] = None


@dataclass(frozen=True)
class EndLabel:
    entity: str
    year: int
    population: float
    dy: int = 0


@dataclass(frozen=True)
class ScenePayload:
    index: int
    title: str
    series: Tuple[Series, ...]
    annotations: Tuple[Annotation, ...] = ()
    end_labels: Tuple[EndLabel, ...] = ()
    y_label: str = "Population (Billions)"
    y_scale: float = BILLION
    y_from_zero: bool = False
    legend_title: Optional[str] = None
    legend_color: Optional[str] = None
    point_every: int = 10
    x_domain: Tuple[int, int] = (START_YEAR, END_YEAR)


@dataclass(frozen=True)
class PlaceholderPayload:
    index: int

    @property
    def message(self) -> str:
        return f"Scene {self.index} coming soon..."


Payload = Union[ScenePayload, PlaceholderPayload]


class AnnotationSpec(NamedTuple):
    entity: str
    year: int
    title: str
    label: str
    offset: Tuple[int, int] = (0, -40)


WORLD_ANNOTATIONS = (
    AnnotationSpec(WORLD, 2080, "Peak population",
                   "World population is projected to peak at about 10.3 billion in the 2080s, then slowly decline.",
                   (-120, 40)),
)

REGION_ANNOTATIONS = (
    AnnotationSpec("Asia", 2050, "Asia peaks",
                   "Asia reaches its peak around mid-century and declines afterwards.",
                   (40, -30)),
    AnnotationSpec("Africa", 2100, "Africa keeps growing",
                   "Africa is the only region still growing strongly in 2100.",
                   (-160, -40)),
    AnnotationSpec("Europe", 2100, "Europe shrinks",
                   "Europe has been shrinking since the 2020s.",
                   (-140, 40)),
)

# Only drawn when the named country made it into the ranked set of the render.
COUNTRY_ANNOTATIONS = (
    AnnotationSpec("Ukraine", 2026, "Ukraine",
                   "War and emigration drive a sharp early decline.",
                   (30, -40)),
    AnnotationSpec("Democratic Republic of Congo", 2060, "DR Congo",
                   "High fertility keeps the population rising through the century.",
                   (-150, -30)),
)


def is_projection(year: int) -> bool:
    return year > LAST_ESTIMATE_YEAR


def format_population(value: float, scale: float = BILLION) -> str:
    if scale == BILLION:
        return f"{value / BILLION:.2f} billion"
    return f"{value / MILLION:.1f}M"


def sample_points(values: Sequence[Observation], every: int) -> List[Observation]:
    """Every n-th observation, starting with the first; used for hover markers."""
    return [obs for i, obs in enumerate(values) if i % every == 0]


def resolve_annotations(specs: Sequence[AnnotationSpec], series: Sequence[Series]) -> Tuple[Annotation, ...]:
    """Evaluates annotation specs against the series actually present in a scene.

    A spec whose entity is not among the series is dropped.
    """
    by_name = {s.name: s for s in series}
    annotations = []
    for spec in specs:
        target = by_name.get(spec.entity)
        if target is None:
            continue
        annotations.append(Annotation(
            anchor_year=spec.year,
            anchor_entity=spec.entity,
            label=spec.label,
            title=spec.title,
            offset=spec.offset,
            anchor_population=target.population_at(spec.year),
        ))
    return tuple(annotations)


def end_labels(series: Sequence[Series]) -> Tuple[EndLabel, ...]:
    labels = []
    for s in series:
        last = s.last
        if last is None:
            continue
        labels.append(EndLabel(s.name, last.year, last.population, LABEL_OFFSETS.get(s.name, 0)))
    return tuple(labels)


def build_world_scene(df: pd.DataFrame) -> ScenePayload:
    series = (Series(WORLD, select_series(df, WORLD)),)
    return ScenePayload(
        index=0,
        title=f"World Population Over Time ({START_YEAR}-{END_YEAR})",
        series=series,
        annotations=resolve_annotations(WORLD_ANNOTATIONS, series),
    )


def build_regions_scene(df: pd.DataFrame) -> ScenePayload:
    series = tuple(Series(region, select_series(df, region)) for region in REGIONS)
    return ScenePayload(
        index=1,
        title=f"Population Trends by Region ({START_YEAR}-{END_YEAR})",
        series=series,
        annotations=resolve_annotations(REGION_ANNOTATIONS, series),
        end_labels=end_labels(series),
    )


def _country_scene(index: int, title: str, color: str, ranked) -> ScenePayload:
    series = tuple(Series(c.entity, c.values, c.growth_rate) for c in ranked)
    return ScenePayload(
        index=index,
        title=title,
        series=series,
        annotations=resolve_annotations(COUNTRY_ANNOTATIONS, series),
        y_label="Population (Millions)",
        y_scale=MILLION,
        y_from_zero=True,
        legend_title="Countries",
        legend_color=color,
        point_every=20,
    )


def build_slowest_scene(df: pd.DataFrame) -> ScenePayload:
    return _country_scene(2, f"Top 5 Slowest Growing Countries ({START_YEAR}-{END_YEAR})", "#2166ac",
                          slowest_growing(df))


def build_fastest_scene(df: pd.DataFrame) -> ScenePayload:
    return _country_scene(3, f"Top 5 Fastest Growing Countries ({START_YEAR}-{END_YEAR})", "#4daf4a",
                          fastest_growing(df))


SCENE_BUILDERS: Dict[int, Callable[[pd.DataFrame], ScenePayload]] = {
    0: build_world_scene,
    1: build_regions_scene,
    2: build_slowest_scene,
    3: build_fastest_scene,
}
LAST_SCENE_INDEX = max(SCENE_BUILDERS)


def build_scene(index: int, df: pd.DataFrame) -> Payload:
    builder = SCENE_BUILDERS.get(index)
    if builder is None:
        return PlaceholderPayload(index)
    return builder(df)

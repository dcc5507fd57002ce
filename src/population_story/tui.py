#!/usr/bin/env python

import logging
from pathlib import Path
from typing import Optional

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Grid, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, LoadingIndicator, Markdown, Static
from textual_plotext import PlotextPlot

from .data_analyzer import DATA_FILE, DataAnalyzer, END_YEAR, START_YEAR
from .navigator import SceneNavigator, SceneView, affordances
from .scenes import (
    LAST_SCENE_INDEX, PlaceholderPayload, ScenePayload, format_population, is_projection, sample_points,
)

logger = logging.getLogger(__name__)

# --- Configuration ---
# Pixel height of the plotting area the label offsets were tuned for.
CHART_HEIGHT_PX = 390

# --- Help Screen ---

HELP_TEXT = f"""
## World Population {START_YEAR}-{END_YEAR}

A short story told in four scenes, using historical estimates and UN medium-variant projections.

### How to Use

- Press **Next** / **Previous** (or the **right** / **left** arrow keys) to move between scenes.
- The table under the chart lists the marked points of the current scene.
- Values up to 2023 are estimates; later values are projections.

### Scenes

* **World:** total population over the century, with its projected peak.
* **Regions:** the six world regions side by side.
* **Slowest Growing:** the five countries with the lowest growth from {START_YEAR} to {END_YEAR}.
* **Fastest Growing:** the five countries with the highest growth over the same period.

### Data Source

Data is provided by [Our World in Data](https://ourworldindata.org/grapher/population-with-un-projections), based on the UN World Population Prospects.

**Press ESC, Q, or ? to close this screen.**
"""

SCENE_NOTES = {
    0: "### World\nThe world keeps growing for another half century before levelling off.",
    1: "### Regions\nAsia dominates today, but nearly all future growth happens in Africa.",
    2: "### Slowest Growing\nThese countries lose the largest share of their population by 2100.",
    3: "### Fastest Growing\nThese countries grow the most, several of them more than doubling.",
}


class HelpScreen(ModalScreen):
    BINDINGS = [
        ("escape", "app.pop_screen", "Close Help"),
        ("q", "app.pop_screen", "Close Help"),
        ("?", "app.pop_screen", "Close Help"),
    ]

    def compose(self) -> ComposeResult:
        with Grid(id="help-grid"):
            yield Markdown(HELP_TEXT)

# --- Textual Application ---

class PopulationStoryApp(App):
    """A Textual app that walks through the population scenes."""

    TITLE = "World Population Story"

    CSS = """
    #app-grid {
        layout: grid;
        grid-size: 2;
        grid-columns: 40 1fr;
        grid-rows: 1fr;
        height: 100%;
        width: 100%;
    }
    #controls-pane {
        layout: grid;
        grid-rows: 1fr auto;
        padding: 1 2;
        border-right: solid $accent;
    }
    #results-pane {
        padding: 0 1;
        height: 100%;
        layout: grid;
        grid-rows: 1fr;
        grid-columns: 1fr;
    }
    .header {
        background: $primary-background-darken-1;
        color: $text;
        padding: 0 1;
        margin-top: 1;
        text-style: bold;
    }
    #scene-nav-buttons {
        layout: horizontal;
        height: auto;
        width: 100%;
        align: center middle;
        margin-top: 1;
    }
    #scene-nav-buttons Button {
        width: 1fr;
    }
    #plot-container {
        height: 100%;
    }
    #plot_view {
        height: 65%;
    }
    #scene-details-table {
        height: 35%;
    }
    #status-container {
        border: round $panel-lighten-1;
        border-title-color: $accent;
        padding: 0 1;
        margin-top: 1;
        height: 5;
    }
    #status_widget {
        height: 100%;
    }
    #loading-overlay {
        background: $surface 50%;
        width: 100%;
        height: 100%;
        align: center middle;
        display: none;
    }
    HelpScreen {
        align: center middle;
    }
    #help-grid {
        grid-size: 1;
        grid-gutter: 1 2;
        padding: 0 1;
        width: 80;
        height: 22;
        border: thick $primary;
        background: $surface;
    }
    """

    BINDINGS = [
        ("right", "next_scene", "Next"),
        ("left", "previous_scene", "Previous"),
        ("d", "toggle_dark", "Toggle dark mode"),
        ("?", "show_help", "Show Help"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, data_file: Path = DATA_FILE):
        super().__init__()
        self.data_analyzer = DataAnalyzer(data_file)
        self.navigator: Optional[SceneNavigator] = None
        self.status_widget = Static("Loading...", id="status_widget")

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-grid"):
            with Container(id="controls-pane"):
                with VerticalScroll():
                    yield Markdown(SCENE_NOTES[0], id="scene_notes")
                    with Horizontal(id="scene-nav-buttons"):
                        yield Button("Previous", id="prev_scene_button", disabled=True)
                        yield Button("Next", variant="primary", id="next_scene_button", disabled=True)
                with Container():
                    yield Static("Status", classes="header")
                    with Container(id="status-container"):
                        yield self.status_widget
            with Container(id="results-pane"):
                with VerticalScroll(id="plot-container"):
                    yield PlotextPlot(id="plot_view")
                    yield DataTable(id="scene-details-table")
                with Container(id="loading-overlay"):
                    yield LoadingIndicator()
        yield Footer()

    def action_show_help(self) -> None:
        """Show the help screen."""
        self.push_screen(HelpScreen())

    def on_mount(self) -> None:
        self.query_one("#status-container").border_title = "Status"
        self.status_widget.update("Loading population data...")
        self._draw_message("Loading population data...")
        self.load_data_worker()

    @work(exclusive=True, thread=True)
    def load_data_worker(self) -> None:
        self.call_from_thread(self._set_loading, True)
        status = self.data_analyzer.load_data()
        self.call_from_thread(self.status_widget.update, status)
        self.call_from_thread(self._set_loading, False)
        self.call_from_thread(self._on_data_loaded, status)

    def _set_loading(self, loading: bool) -> None:
        self.query_one("#loading-overlay").display = loading

    def _on_data_loaded(self, status: str) -> None:
        if self.data_analyzer.df is None:
            self.status_widget.update(f"[bold red]Failed to load data.[/]\n{status}")
            self._draw_message("Failed to load data")
            return
        self.navigator = SceneNavigator(self.data_analyzer.df)
        self.status_widget.update(f"[bold green]Data loaded![/]\n({len(self.data_analyzer.df):,} records)")
        self._show(self.navigator.current())

    def action_next_scene(self) -> None:
        if self.navigator is None or not affordances(self.navigator.state).next_enabled:
            return
        self._show(self.navigator.advance())

    def action_previous_scene(self) -> None:
        if self.navigator is None:
            return
        self._show(self.navigator.retreat())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if self.navigator is None:
            self.status_widget.update("[bold yellow]Please wait for the data to load.[/]")
            return
        if event.button.id == "next_scene_button":
            self.action_next_scene()
        elif event.button.id == "prev_scene_button":
            self.action_previous_scene()

    def _show(self, view: SceneView) -> None:
        logger.info("Showing scene %d", view.state.index)
        self.query_one("#prev_scene_button").disabled = not view.affordances.previous_enabled
        self.query_one("#next_scene_button").disabled = not view.affordances.next_enabled
        self.query_one("#scene_notes", Markdown).update(SCENE_NOTES.get(view.state.index, f"### Scene {view.state.index}"))

        if isinstance(view.payload, PlaceholderPayload):
            self._draw_message(view.payload.message)
            self.status_widget.update(view.payload.message)
            return
        self._draw_scene(view.payload)
        self._fill_details_table(view.payload)
        self.status_widget.update(f"Scene {view.state.index + 1} of {LAST_SCENE_INDEX + 1}: {view.payload.title}")

    def _draw_message(self, message: str) -> None:
        plot = self.query_one(PlotextPlot)
        plt = plot.plt
        plt.clear_data()
        plt.title(message)
        plt.build()
        plot.refresh()
        self.query_one("#scene-details-table").display = False

    def _setup_plot_axes(self, plt, payload: ScenePayload, low: float, high: float) -> None:
        """Helper to configure plot axes and ticks consistently."""
        plt.xlabel("Year")
        plt.ylabel(payload.y_label)
        plt.grid(True, True)

        start, end = payload.x_domain
        plt.xlim(start, end)
        plt.xticks(list(range(start, end + 1, 10)))

        if payload.y_from_zero:
            low = 0.0
        if high > low:
            plt.ylim(low, high)
            step = (high - low) / 4
            y_ticks = [low + i * step for i in range(5)]
            unit = "B" if payload.y_label.endswith("(Billions)") else "M"
            plt.yticks(y_ticks, [f"{tick:,.1f}{unit}" for tick in y_ticks])

    def _draw_scene(self, payload: ScenePayload) -> None:
        plot = self.query_one(PlotextPlot)
        plt = plot.plt
        plt.clear_data()

        scaled = [p.population / payload.y_scale for s in payload.series for p in s.values]
        low, high = (min(scaled), max(scaled)) if scaled else (0.0, 1.0)
        span = (high - (0.0 if payload.y_from_zero else low)) or 1.0

        for s in payload.series:
            if not s.values:
                continue
            plt.plot([p.year for p in s.values], [p.population / payload.y_scale for p in s.values], label=s.legend_label)
            points = sample_points(s.values, payload.point_every)
            plt.scatter([p.year for p in points], [p.population / payload.y_scale for p in points], marker="dot")

        # SVG offsets grow downwards; plot coordinates grow upwards.
        for label in payload.end_labels:
            y = label.population / payload.y_scale - label.dy * span / CHART_HEIGHT_PX
            plt.text(label.entity, x=label.year, y=y, alignment="right")

        for note in payload.annotations:
            if note.anchor_population is None:
                continue
            y = note.anchor_population / payload.y_scale
            plt.scatter([note.anchor_year], [y], marker="x", color="red")
            plt.text(note.title, x=note.anchor_year, y=y - note.offset[1] * span / CHART_HEIGHT_PX,
                     alignment="center", color="red")

        plt.title(payload.title)
        self._setup_plot_axes(plt, payload, low, high)
        plt.build()
        plot.refresh()

    def _fill_details_table(self, payload: ScenePayload) -> None:
        details_table = self.query_one("#scene-details-table", DataTable)
        details_table.display = True
        details_table.clear(columns=True)
        details_table.add_columns("Entity", "Year", "Population", "Source", "Growth")
        for s in payload.series:
            growth = f"{s.growth_rate * 100:.1f}%" if s.growth_rate is not None else ""
            for p in sample_points(s.values, payload.point_every):
                details_table.add_row(
                    s.name, str(p.year), format_population(p.population, payload.y_scale),
                    "Projected Data" if is_projection(p.year) else "Historical Data", growth,
                )
        if payload.annotations:
            notes = "\n".join(f"* **{n.title}** ({n.anchor_year}): {n.label}" for n in payload.annotations)
            current = self.query_one("#scene_notes", Markdown)
            current.update(SCENE_NOTES.get(payload.index, "") + "\n\n" + notes)

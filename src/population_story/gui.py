#!/usr/bin/env python

import logging
import flet as ft
import matplotlib
matplotlib.use("Agg")  # Use the Agg backend for thread-safe plotting
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter
import seaborn as sns
from io import BytesIO
import base64
from pathlib import Path
from typing import Optional

from .data_analyzer import DATA_FILE, DataAnalyzer
from .navigator import SceneNavigator, SceneView
from .scenes import (
    BILLION, LAST_SCENE_INDEX, PlaceholderPayload, ScenePayload,
    format_population, is_projection, sample_points,
)

logger = logging.getLogger(__name__)


class PopulationStoryGUI:
    def __init__(self, page: ft.Page, data_file: Path = DATA_FILE):
        self.page = page
        self.page.title = "World Population Story (GUI)"
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.window_width = 1200
        self.page.window_height = 860

        # Set the base theme colors
        self.page.theme = ft.Theme(color_scheme_seed=ft.Colors.BLUE_GREY)
        self.page.dark_theme = ft.Theme(color_scheme_seed=ft.Colors.BLUE_GREY)

        self.analyzer = DataAnalyzer(data_file)
        self.navigator: Optional[SceneNavigator] = None

        # --- UI Control References ---
        self.plot_image = ft.Image(expand=True)
        self.data_table = ft.DataTable(columns=[ft.DataColumn(ft.Text("Info"))], rows=[ft.DataRow(cells=[ft.DataCell(ft.Text("Loading..."))])])
        self.progress_ring = ft.ProgressRing(width=32, height=32)
        self.status_text = ft.Text("Loading...")
        self.scene_title = ft.Text("", size=24, weight=ft.FontWeight.BOLD)
        self.notes_column = ft.Column([], spacing=6)
        self.prev_button = ft.IconButton(icon=ft.Icons.KEYBOARD_ARROW_LEFT, tooltip="Previous scene", on_click=self.retreat_clicked, disabled=True)
        self.next_button = ft.IconButton(icon=ft.Icons.KEYBOARD_ARROW_RIGHT, tooltip="Next scene", on_click=self.advance_clicked, disabled=True)

        # --- Build UI ---
        self.build_ui()

        # --- Initial Data Load ---
        self.page.run_thread(self.load_data_worker)

    def build_ui(self):
        """Builds the main UI structure, including loading and main views."""
        self.loading_container = ft.Column([self.progress_ring, self.status_text], alignment=ft.MainAxisAlignment.CENTER, horizontal_alignment=ft.CrossAxisAlignment.CENTER, expand=True, visible=True)
        self.main_container = self.build_full_app_layout()
        self.main_container.visible = False
        self.page.add(self.loading_container, self.main_container)
        self.page.update()

    def build_full_app_layout(self) -> ft.Column:
        nav_row = ft.Row([self.prev_button, self.scene_title, self.next_button], alignment=ft.MainAxisAlignment.CENTER)
        details = ft.Container(content=ft.Column([ft.Text("Notes", size=20, weight=ft.FontWeight.BOLD), self.notes_column, ft.Divider(), ft.Text("Values", size=20, weight=ft.FontWeight.BOLD), ft.Column([self.data_table], scroll=ft.ScrollMode.AUTO, expand=True)]), width=380, padding=ft.padding.all(10), border=ft.border.only(left=ft.BorderSide(1, ft.Colors.OUTLINE)))
        main_area = ft.Container(content=ft.Column([nav_row, self.plot_image, ft.Row([ft.Icon(ft.Icons.INFO_OUTLINE), self.status_text])], expand=True, horizontal_alignment=ft.CrossAxisAlignment.CENTER), expand=True, padding=ft.padding.all(10))
        return ft.Column([ft.Row([main_area, details], expand=True, vertical_alignment=ft.CrossAxisAlignment.STRETCH)], expand=True)

    def load_data_worker(self):
        """Worker thread to load data and update UI when done."""
        status = self.analyzer.load_data()
        if self.analyzer.df is not None:
            self.navigator = SceneNavigator(self.analyzer.df)
            self.loading_container.visible = False; self.main_container.visible = True
            self.display_view(self.navigator.current())
        else:
            self.progress_ring.visible = False; self.status_text.value = f"Failed to load data. Error: {status}"
        self.page.update()

    def advance_clicked(self, e):
        if self.navigator is None: return
        self.display_view(self.navigator.advance())

    def retreat_clicked(self, e):
        if self.navigator is None: return
        self.display_view(self.navigator.retreat())

    def display_view(self, view: SceneView):
        logger.info("Showing scene %d", view.state.index)
        self.prev_button.disabled = not view.affordances.previous_enabled
        self.next_button.disabled = not view.affordances.next_enabled
        if isinstance(view.payload, PlaceholderPayload):
            self.display_placeholder(view.payload)
        else:
            self.display_scene(view.payload)
        self.page.update()

    def display_placeholder(self, payload: PlaceholderPayload):
        self.scene_title.value = f"Scene {payload.index}"
        self.plot_image.visible = False
        self.notes_column.controls = [ft.Text(payload.message, italic=True)]
        self.data_table.columns = [ft.DataColumn(ft.Text("Info"))]; self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text(payload.message))])]
        self.status_text.value = payload.message

    def display_scene(self, payload: ScenePayload):
        self.scene_title.value = payload.title
        self.plot_image.src_base64 = self.fig_to_base64(self.draw_scene(payload)); self.plot_image.visible = True
        self.notes_column.controls = [ft.Text(f"{n.title} ({n.anchor_year}): {n.label}") for n in payload.annotations] or [ft.Text("No notes for this scene.", italic=True)]
        self.data_table.columns = [ft.DataColumn(ft.Text("Entity")), ft.DataColumn(ft.Text("Year")), ft.DataColumn(ft.Text("Population")), ft.DataColumn(ft.Text("Source"))]
        rows = []
        for s in payload.series:
            for p in sample_points(s.values, payload.point_every):
                rows.append(ft.DataRow(cells=[ft.DataCell(ft.Text(s.name)), ft.DataCell(ft.Text(str(p.year))), ft.DataCell(ft.Text(format_population(p.population, payload.y_scale))), ft.DataCell(ft.Text("Projected" if is_projection(p.year) else "Historical"))]))
        self.data_table.rows = rows
        self.status_text.value = f"Scene {payload.index + 1} of {LAST_SCENE_INDEX + 1}"

    def draw_scene(self, payload: ScenePayload):
        fig, ax = self.create_plot()
        palette = sns.color_palette("tab10", n_colors=max(len(payload.series), 1))
        for color, s in zip(palette, payload.series):
            if not s.values: continue
            years = [p.year for p in s.values]; pops = [p.population / payload.y_scale for p in s.values]
            sns.lineplot(x=years, y=pops, ax=ax, color=color, linewidth=2.5, label=s.legend_label if payload.legend_title else None)
            if len(payload.series) == 1: ax.fill_between(years, pops, min(pops), color=color, alpha=0.1)
            points = sample_points(s.values, payload.point_every)
            ax.scatter([p.year for p in points], [p.population / payload.y_scale for p in points], color=color, edgecolor="white", zorder=3, s=25)

        # Offsets are in screen pixels pointing down; matplotlib offset points point up.
        colors = {s.name: c for c, s in zip(palette, payload.series)}
        for label in payload.end_labels:
            ax.annotate(label.entity, xy=(label.year, label.population / payload.y_scale), xytext=(5, -label.dy), textcoords="offset points", va="center", fontsize=10, color=colors.get(label.entity))

        for note in payload.annotations:
            if note.anchor_population is None: continue
            ax.annotate(f"{note.title}\n{note.label}", xy=(note.anchor_year, note.anchor_population / payload.y_scale), xytext=(note.offset[0], -note.offset[1]), textcoords="offset points", fontsize=8, wrap=True, arrowprops=dict(arrowstyle="->", color="grey"), bbox=dict(boxstyle="round", fc="none", ec="grey"))

        unit = "B" if payload.y_scale == BILLION else "M"
        ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{v:g}{unit}"))
        ax.set_xlim(*payload.x_domain)
        if payload.y_from_zero: ax.set_ylim(bottom=0)
        ax.set_title(payload.title, fontsize=16); ax.set_xlabel("Year", fontsize=12); ax.set_ylabel(payload.y_label, fontsize=12)
        if payload.legend_title:
            legend = ax.legend(title=payload.legend_title, loc="upper left", bbox_to_anchor=(1.01, 1), frameon=False)
            legend.get_title().set_color(payload.legend_color)
            for text in legend.get_texts(): text.set_color(payload.legend_color)
        return fig

    def create_plot(self):
        is_dark = self.page.theme_mode == ft.ThemeMode.DARK
        text_color = "white" if is_dark else "black"
        sns.set_theme(style="darkgrid" if is_dark else "whitegrid")

        matplotlib.rcParams.update({
            'text.color': text_color,
            'axes.labelcolor': text_color,
            'xtick.color': text_color,
            'ytick.color': text_color,
            'axes.edgecolor': text_color,
            'axes.titlecolor': text_color,
        })

        fig, ax = plt.subplots(figsize=(10, 6))
        return fig, ax

    def fig_to_base64(self, fig):
        buf = BytesIO(); fig.savefig(buf, format="png", bbox_inches="tight", transparent=True); plt.close(fig)
        return base64.b64encode(buf.getvalue()).decode("utf-8")

def main(page: ft.Page, data_file: Path = DATA_FILE):
    PopulationStoryGUI(page, data_file)

if __name__ == "__main__":
    ft.app(target=main)

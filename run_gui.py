#!/usr/bin/env python

import argparse
import logging

import flet as ft
from population_story.data_analyzer import DATA_FILE
from population_story.gui import main as gui_main
from population_story.logging_config import setup_logging

if __name__ == "__main__":
    """
    This script is the entry point for running the Flet-based Graphical User Interface (GUI).
    """
    parser = argparse.ArgumentParser(description="World population story (GUI)")
    parser.add_argument("--data", default=str(DATA_FILE), help="Path to population-with-un-projections.csv")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)
    ft.app(target=lambda page: gui_main(page, args.data))

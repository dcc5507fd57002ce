#!/usr/bin/env python

import argparse
import logging

from population_story.data_analyzer import DATA_FILE
from population_story.logging_config import setup_logging
from population_story.tui import PopulationStoryApp

if __name__ == "__main__":
    """
    This script is the entry point for running the Textual User Interface (TUI).
    The terminal belongs to the app, so logs only go to a file when one is given.
    """
    parser = argparse.ArgumentParser(description="World population story (terminal UI)")
    parser.add_argument("--data", default=str(DATA_FILE), help="Path to population-with-un-projections.csv")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file, console=False)
    app = PopulationStoryApp(args.data)
    app.run()

#!/usr/bin/env python3
"""
Gator - RSS Feed Aggregator
===========================

Main application entry point; equivalent to the ``gator`` console script.

Usage:
    python main.py --help                    # Show all commands
    python main.py register alice            # Create a user
    python main.py addfeed "HN" https://news.ycombinator.com/rss
    python main.py agg 1m                    # Poll feeds every minute
    python main.py browse 5                  # Newest five posts
"""

import sys

from gator.cli import cli, console

if __name__ == "__main__":
    try:
        cli(prog_name="gator")
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Gator interrupted by user[/yellow]")
        sys.exit(130)

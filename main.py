#!/usr/bin/env python3
"""
codepecker - Codepecker static analysis client

Main entry point for running the CLI from a source checkout.

Usage:
    python main.py scan --key KEY --file app.zip
    python main.py scan --key KEY --task 20240101-42 --severity high
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from codepecker.cli import cli


if __name__ == '__main__':
    cli()

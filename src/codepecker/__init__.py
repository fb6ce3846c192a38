"""
codepecker - Remote static-analysis task orchestrator

Submits source code to a Codepecker scanning backend, waits for the scan
to finish, and collects the findings into a single JSON report.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "codepecker Team"
__status__ = "Development"

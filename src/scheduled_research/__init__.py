"""
Scheduled Research - recurring research jobs with report delivery.

Turns stored job definitions into policy-aware research queries, runs the
fetch/compile/analyze/deliver pipeline with explicit run-state tracking,
schedules the next execution and renders finished reports.
"""

__version__ = "1.0.0"

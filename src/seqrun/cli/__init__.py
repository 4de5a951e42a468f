"""
CLI layer for seqrun.

Terminal transport only: argument parsing, coloured output and table
formatting. Runs go through ``seqrun.execution``, HTTP through
``seqrun.clients``.

Entry point::

    seqrun --help
"""

from seqrun.cli.app import app

__all__ = ["app"]

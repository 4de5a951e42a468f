"""Allow ``python -m seqrun``."""

from seqrun.cli import app

app()

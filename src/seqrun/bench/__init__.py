"""Benchmark harness for comparing sequencing techniques."""

from seqrun.bench.harness import BenchmarkHarness, BenchmarkReport, BenchmarkResult, make_tasks
from seqrun.bench.techniques import TECHNIQUES, Technique, get_technique

__all__ = [
    "BenchmarkHarness",
    "BenchmarkReport",
    "BenchmarkResult",
    "make_tasks",
    "TECHNIQUES",
    "Technique",
    "get_technique",
]

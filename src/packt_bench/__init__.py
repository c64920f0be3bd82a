"""packt-bench: deadline-bounded benchmarking of external packing solvers."""

__version__ = "0.1.0"

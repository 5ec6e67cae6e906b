"""benchify: a convenient benchmarking harness for command-line tools."""

__version__ = "0.1.0"

"""scanfold - fold heterogeneous security scanner output into one verdict."""

__version__ = "0.1.0"

"""Gmail filters and labels as data: build, simplify, diff, import and export them."""

__version__ = "0.1.0"
"""covpush — publish normalized test-coverage percentages to a metrics endpoint."""

__version__ = "0.1.0"

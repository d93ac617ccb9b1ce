"""Batch payroll check review and commit."""

__version__ = "0.1.0"

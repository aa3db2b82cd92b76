"""Payroll book reconciliation and RCV journal entry engine."""

__version__ = "0.1.0"

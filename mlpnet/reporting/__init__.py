"""Reporting utilities for mlpnet training runs."""

from .metrics import CsvSink, HistoryCapture, JsonlSink
from .summary import summarise, write_summary

__all__ = ["CsvSink", "HistoryCapture", "JsonlSink", "summarise", "write_summary"]

"""Exporter layer: file deletion and run reports."""

from class_prune.exporter.deleter import delete_units
from class_prune.exporter.report import build_report, write_report

__all__ = ["build_report", "delete_units", "write_report"]

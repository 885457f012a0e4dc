"""Diagnostics for dyeflow runs"""

from .diagnostics import DiagnosticRecorder

__all__ = [
    'DiagnosticRecorder'
]

"""Ingestion layer.

Adapters that turn raw WhatsGPS position reports into normalized
:class:`~pywhatsgps.models.TrackedEntity` objects.
"""

from pywhatsgps.ingestion.normalize import normalize_report, normalize_reports

__all__ = ["normalize_report", "normalize_reports"]

"""Console and file reports for seeding runs."""

from .seed_summary import (
    ANOMALY_LOG_HEADERS,
    anomaly_log_frame,
    anomaly_log_table,
    print_seed_report,
    quota_table,
    save_anomaly_log,
    summary_table,
)

__all__ = [
    "ANOMALY_LOG_HEADERS",
    "anomaly_log_frame",
    "anomaly_log_table",
    "print_seed_report",
    "quota_table",
    "save_anomaly_log",
    "summary_table",
]

from .report_channel import (
    ReportChannel as ReportChannel,
    ReportOutcome as ReportOutcome,
)

"""
reports/metric.py

Cleartext metric report as submitted by clients.
"""

from __future__ import annotations

from dataclasses import dataclass

from reports.base import Report


@dataclass(frozen=True)
class MetricReport(Report):
    """
    One cleartext metric observation.

    The rendering uses a fixed field order with one labeled line per field,
    so the crowd ID is independent of JSON key order or whitespace.
    """

    year_of_survey: int
    year_of_install: int
    week_of_survey: int
    week_of_install: int
    metric_value: int
    metric_hash: str
    country_code: str
    platform: str
    version: str
    channel: str
    refcode: str

    def render(self) -> str:
        return (
            "P3A message:\n"
            f"\tYear of survey:  {self.year_of_survey:d}\n"
            f"\tYear of install: {self.year_of_install:d}\n"
            f"\tWeek of survey:  {self.week_of_survey:d}\n"
            f"\tWeek of install: {self.week_of_install:d}\n"
            f"\tMetric value:    {self.metric_value:d}\n"
            f"\tMetric hash:     {self.metric_hash}\n"
            f"\tCountry code:    {self.country_code}\n"
            f"\tPlatform:        {self.platform}\n"
            f"\tVersion:         {self.version}\n"
            f"\tChannel:         {self.channel}\n"
            f"\tRefcode:         {self.refcode}\n"
        )

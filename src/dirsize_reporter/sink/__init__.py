"""Metric sink clients."""

from dirsize_reporter.sink.influx import InfluxDBSink, validate_address
from dirsize_reporter.sink.line_protocol import encode_point, encode_points

__all__ = [
    "InfluxDBSink",
    "encode_point",
    "encode_points",
    "validate_address",
]

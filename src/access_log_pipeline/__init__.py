"""
Access-log ingestion pipeline.

Converts AWS ELB and CloudFront access-log objects into structured events,
samples them adaptively per key, forwards them to a telemetry backend and
remembers which objects are done.
"""

__version__ = "0.1.0"

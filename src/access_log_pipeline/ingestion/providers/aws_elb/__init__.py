"""
AWS Elastic Load Balancer event parser.

Parses ELB access logs (space-separated, quoted request and user agent).
"""

from .adapter import ELBEventParser

__all__ = ["ELBEventParser"]

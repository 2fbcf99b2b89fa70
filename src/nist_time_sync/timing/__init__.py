"""Time source access: daytime protocol client and NIST reply parser."""

from .daytime_client import DaytimeClient, DEFAULT_HOST, DEFAULT_PORT
from .nist_parser import parse_nist_response

__all__ = ['DaytimeClient', 'DEFAULT_HOST', 'DEFAULT_PORT', 'parse_nist_response']

"""Utility modules for configuration, logging, errors and Bedrock access."""

from .response_formatter import ResponseFormatter

__all__ = [
    'ResponseFormatter'
]

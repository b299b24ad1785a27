"""
Utility modules.
"""

from .helpers import get_value, load_key_value_config, parse_descriptor

__all__ = ["get_value", "load_key_value_config", "parse_descriptor"]

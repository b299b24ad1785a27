"""Small utility helpers used across the tool.

Parsing of the line-oriented release catalogs and of the ``<id>:<version>``
descriptors accepted on the command line.
"""
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from mpilaunch.errors import ConfigurationError


def load_key_value_config(file_path: Union[str, Path]) -> Dict[str, str]:
    """Load a ``key=value`` file into an ordered dict.

    Blank lines and lines starting with ``#`` are skipped. Values may
    themselves contain ``=`` (URLs with query strings), only the first one
    splits.

    Raises:
        OSError: If the file cannot be read
    """
    config_dict: Dict[str, str] = {}
    with open(file_path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            config_dict[key.strip()] = value.strip()
    return config_dict


def get_value(kvs: Dict[str, str], key: str) -> str:
    """Return the value for ``key`` or an empty string."""
    return kvs.get(key, "")


def parse_descriptor(desc: str, default_id: Optional[str] = None) -> Tuple[str, str]:
    """Split an ``<id>:<version>`` descriptor.

    ``<id>-<version>`` is accepted as well since that is how installs are
    named on disk.

    Raises:
        ConfigurationError: If the descriptor does not have two fields
    """
    desc = (desc or "").strip()
    sep = ':' if ':' in desc else '-'
    tokens = desc.split(sep, 1)
    if len(tokens) == 1 and default_id and tokens[0]:
        return default_id, tokens[0]
    if len(tokens) != 2 or not tokens[0] or not tokens[1]:
        raise ConfigurationError(
            f"invalid descriptor '{desc}', it should be of the form '<implementation>:<version>'"
        )
    return tokens[0], tokens[1]

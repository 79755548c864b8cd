import hashlib
import ipaddress
import json
import os
from typing import Any, Dict, List, Optional


def load_json_data(json_str: Optional[str] = None, json_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load JSON input from a string or a file.

    Args:
        json_str: JSON document passed on the command line
        json_file: Path to a file holding the JSON document

    Returns:
        Parsed document

    Raises:
        ValueError: If neither input is given or the document is not a JSON object
    """
    if json_file:
        with open(json_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    elif json_str:
        data = json.loads(json_str)
    else:
        raise ValueError("Either json_str or json_file must be provided")

    if not isinstance(data, dict):
        raise ValueError("Input must be a JSON object")
    return data


def expand_path(path: str) -> str:
    """Expand ~ and environment variables in a local path."""
    return os.path.expandvars(os.path.expanduser(path))


def file_md5(path: str, chunk_size: int = 65536) -> str:
    """Return the hex MD5 digest of a local file."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def ip_range(min_address: str, max_address: str) -> List[str]:
    """Return every IPv4 address from min_address to max_address inclusive."""
    if not min_address or not max_address:
        return []
    start = int(ipaddress.IPv4Address(min_address))
    end = int(ipaddress.IPv4Address(max_address))
    return [str(ipaddress.IPv4Address(i)) for i in range(start, end + 1)]

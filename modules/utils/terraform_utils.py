"""Terraform-specific utility functions.

Helpers for normalising python-hcl2 output and reading variable files.
"""

import json
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict

import hcl2

from modules.exceptions import TerraformParsingError


def unquote(value: Any) -> Any:
    """Strip the double quotes newer python-hcl2 releases keep around strings.

    Non-string values are returned unchanged.
    """
    if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def normalise(value: Any) -> Any:
    """Recursively unquote keys and string values of parsed HCL data."""
    if isinstance(value, dict):
        return {unquote(k): normalise(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalise(v) for v in value]
    return unquote(value)


def tfvar_read(filepath: str) -> Dict[str, Any]:
    """Read and parse a Terraform variable file (.tfvars).

    Args:
        filepath: Path to .tfvars file (HCL or JSON format)

    Returns:
        dict: Parsed variable definitions

    Raises:
        FileNotFoundError: If file does not exist
        TerraformParsingError: If file cannot be parsed
    """
    if not Path(filepath).exists():
        raise FileNotFoundError(f"Variable file not found: {filepath}")

    # Try parsing as JSON first
    with suppress(json.JSONDecodeError):
        with open(filepath, "r") as f:
            return json.load(f)

    try:
        with open(filepath, "r") as f:
            parsed_data = hcl2.load(f)
    except Exception as e:
        raise TerraformParsingError(
            f"Failed to parse variable file: {filepath}",
            context={"error": str(e), "filepath": filepath},
        ) from e
    # Older python-hcl2 releases wrap each attribute value in a list
    return {
        unquote(k): normalise(v[0] if isinstance(v, list) and len(v) == 1 else v)
        for k, v in parsed_data.items()
    }

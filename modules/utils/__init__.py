"""Utility modules for the secure CI/CD blueprint tooling.

This package contains helpers for reading Terraform variable files and
normalising python-hcl2 output.
"""

from .terraform_utils import normalise, tfvar_read, unquote

__all__ = [
    # Terraform utilities
    "normalise",
    "tfvar_read",
    "unquote",
]

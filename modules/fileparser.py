"""File parser module for the blueprint's Terraform declarations.

Discovers ``.tf`` files in the blueprint directory, parses them with
python-hcl2 and builds an inventory of the declared resources grouped by
what they do in the pipeline (clusters, signing, attestation, ...).
"""

import os
from pathlib import Path
from typing import Any, Dict, List

import click
import hcl2

import modules.config.blueprint_config as blueprint_config
from modules.exceptions import TerraformParsingError
from modules.utils.terraform_utils import normalise, tfvar_read

def find_tf_files(tfdir: str) -> List[str]:
    """Discover Terraform files in the blueprint directory.

    Args:
        tfdir: Directory holding the blueprint

    Returns:
        Sorted list of paths to ``.tf`` files

    Raises:
        TerraformParsingError: If the directory is missing or has no .tf files
    """
    if not os.path.isdir(tfdir):
        raise TerraformParsingError(
            f"Terraform directory not found: {tfdir}", context={"tfdir": tfdir}
        )
    paths = sorted(
        os.path.join(tfdir, f) for f in os.listdir(tfdir) if f.lower().endswith(".tf")
    )
    if len(paths) == 0:
        raise TerraformParsingError(
            f"No Terraform .tf files found in {tfdir}", context={"tfdir": tfdir}
        )
    return paths


def parse_tf_files(tf_file_paths: List[str]) -> Dict[str, Dict[str, Any]]:
    """Parse each Terraform file with python-hcl2.

    Returns:
        Mapping of file path to its parsed (normalised) HCL dictionary

    Raises:
        TerraformParsingError: Naming the first file that fails to parse
    """
    hcl_dict: Dict[str, Dict[str, Any]] = dict()
    for filename in tf_file_paths:
        with click.open_file(filename, "r", encoding="utf8") as f:
            try:
                hcl_dict[filename] = normalise(hcl2.load(f))
            except Exception as error:
                raise TerraformParsingError(
                    "A Terraform HCL parsing error occurred",
                    context={"file": filename, "error": str(error)},
                ) from error
    return hcl_dict


def _is_metadata(key: str) -> bool:
    # Newer python-hcl2 releases add keys such as __is_block__ and __start_line__
    return key.startswith("__") and key.endswith("__")


def collect_section(
    hcl_dict: Dict[str, Dict[str, Any]], section: str
) -> Dict[str, List[Any]]:
    """Gather one section (e.g. ``resource``) from every parsed file."""
    found: Dict[str, List[Any]] = dict()
    for filename, parsed in hcl_dict.items():
        if section in parsed:
            found[filename] = parsed[section]
    return found


def collect_resources(hcl_dict: Dict[str, Dict[str, Any]]) -> List[str]:
    """List the ``type.name`` addresses of every managed resource declared.

    Returns:
        Addresses in file then declaration order, without duplicates
    """
    addresses: List[str] = list()
    for stanzas in collect_section(hcl_dict, "resource").values():
        for stanza in stanzas:
            for resource_type, named in stanza.items():
                if _is_metadata(resource_type) or not isinstance(named, dict):
                    continue
                for name in named:
                    if _is_metadata(name):
                        continue
                    address = f"{resource_type}.{name}"
                    if address not in addresses:
                        addresses.append(address)
    return addresses


def collect_names(hcl_dict: Dict[str, Dict[str, Any]], section: str) -> List[str]:
    """List block names of a single-label section such as ``variable``."""
    names: List[str] = list()
    for stanzas in collect_section(hcl_dict, section).values():
        for stanza in stanzas:
            names.extend(k for k in stanza if not _is_metadata(k) and k not in names)
    return names


def resource_category(address: str) -> str:
    """Return the blueprint category for a resource address."""
    resource_type = address.split(".")[0]
    for category, prefixes in blueprint_config.RESOURCE_CATEGORIES:
        if any(resource_type.startswith(p) for p in prefixes):
            return category
    return blueprint_config.DEFAULT_CATEGORY


def categorize_resources(addresses: List[str]) -> Dict[str, List[str]]:
    """Group resource addresses by blueprint category.

    Every configured category is present in the result, possibly empty, in
    configuration order followed by the default category.
    """
    grouped: Dict[str, List[str]] = {
        category: [] for category, _ in blueprint_config.RESOURCE_CATEGORIES
    }
    grouped[blueprint_config.DEFAULT_CATEGORY] = []
    for address in addresses:
        grouped[resource_category(address)].append(address)
    return grouped


def read_tfsource(tfdir: str) -> Dict[str, Any]:
    """Parse the blueprint directory into an inventory dictionary.

    Args:
        tfdir: Directory holding the blueprint

    Returns:
        dict with ``files``, ``resources``, ``categories``, ``variables``,
        ``outputs`` and ``tfvars`` (values from terraform.tfvars, if present)
    """
    tf_file_paths = find_tf_files(tfdir)
    hcl_dict = parse_tf_files(tf_file_paths)
    resources = collect_resources(hcl_dict)
    tfvars_path = Path(tfdir, "terraform.tfvars")
    tfvars = tfvar_read(str(tfvars_path)) if tfvars_path.is_file() else {}
    return {
        "files": tf_file_paths,
        "resources": resources,
        "categories": categorize_resources(resources),
        "variables": collect_names(hcl_dict, "variable"),
        "outputs": collect_names(hcl_dict, "output"),
        "tfvars": tfvars,
    }

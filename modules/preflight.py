"""Precondition checks run before Terraform is invoked.

Every check raises a BlueprintError subclass on failure so that the CLI can
stop before touching any infrastructure.
"""

import logging
import shutil
import subprocess
from typing import Dict, List

import modules.config.blueprint_config as blueprint_config
from modules.envvars import bucket_name
from modules.exceptions import BlueprintError, MissingToolError, StateBucketError

logger = logging.getLogger(__name__)


def verify_cli_tools(required: List[str]) -> Dict[str, str]:
    """Check that each required command-line tool is on PATH.

    Args:
        required: Executable names (e.g. gcloud, terraform, gsutil)

    Returns:
        Mapping of tool name to resolved path

    Raises:
        MissingToolError: If any tool is missing; all are reported together
    """
    found: Dict[str, str] = dict()
    missing: List[str] = list()
    for exe in required:
        location = shutil.which(exe)
        if location:
            logger.debug(f"{exe} command detected: {location}")
            found[exe] = location
        else:
            missing.append(exe)
    if missing:
        raise MissingToolError(
            f"Command(s) not detected in PATH: {', '.join(missing)}. "
            "Please install all required dependencies first",
            context={"missing": ",".join(missing)},
        )
    return found


def parse_terraform_version(version_output: str) -> str:
    """Extract ``X.Y.Z`` from the first line of ``terraform -v`` output.

    Raises:
        MissingToolError: If the output does not look like a Terraform version
    """
    version_line = version_output.strip().split("\n")[0]
    parts = version_line.split(" ")
    if len(parts) < 2 or not parts[0] == "Terraform":
        raise MissingToolError(
            "Unrecognised output from 'terraform -v'",
            context={"output": version_line},
        )
    return parts[1].lstrip("v")


def check_terraform_version(
    min_major: int = blueprint_config.TERRAFORM_SUPPORTED_MAJOR,
) -> str:
    """Validate the installed Terraform version is compatible.

    Args:
        min_major: Supported major version

    Returns:
        The detected version string

    Raises:
        MissingToolError: If terraform cannot be run or its output is unparsable
        BlueprintError: If the major version is not supported
    """
    try:
        result = subprocess.run(
            ["terraform", "-v"], capture_output=True, text=True, check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise MissingToolError(
            f"Failed to check Terraform version: {e}", context={"tool": "terraform"}
        ) from e
    version = parse_terraform_version(result.stdout)
    major = version.split(".")[0]
    if not major.isdigit() or int(major) != min_major:
        raise BlueprintError(
            f"Terraform version '{version}' is not supported. "
            f"Please use v{min_major}.x",
            context={"version": version},
        )
    logger.debug(f"terraform version detected: {version}")
    return version


def verify_state_bucket(bucket: str) -> None:
    """Check the Terraform remote state bucket can be listed with gsutil.

    Args:
        bucket: Bucket name, without the ``gs://`` scheme

    Raises:
        StateBucketError: If the name is empty or gsutil cannot list the bucket
    """
    bucket = bucket_name(bucket)
    if not bucket:
        raise StateBucketError("Terraform state bucket name is empty")
    url = f"gs://{bucket}"
    try:
        result = subprocess.run(
            ["gsutil", "ls", "-al", url], capture_output=True, text=True
        )
    except FileNotFoundError as e:
        raise MissingToolError(
            f"Failed to run gsutil: {e}", context={"tool": "gsutil"}
        ) from e
    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip()
        raise StateBucketError(
            f"Access to Terraform State Bucket failed: {detail}",
            context={"bucket": url, "returncode": result.returncode},
        )
    logger.debug(f"Listed state bucket {url}")

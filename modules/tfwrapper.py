"""Terraform invocation for the blueprint.

Commands run inside the blueprint's Terraform directory and inherit the
terminal, so Terraform's own prompts (e.g. apply/destroy approval) still work
when quiet mode is off.
"""

import json
import logging
import os
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from modules.exceptions import TerraformCommandError

logger = logging.getLogger(__name__)


@contextmanager
def working_directory(path: str) -> Iterator[Path]:
    """Change into ``path`` for the duration of the block, then change back.

    Raises:
        TerraformCommandError: If the directory does not exist
    """
    target = Path(path)
    if not target.is_dir():
        raise TerraformCommandError(
            f"Terraform directory not found: {path}", context={"tfdir": path}
        )
    start_dir = Path.cwd()
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(start_dir)


def build_var_args(variables: Dict[str, str]) -> List[str]:
    """Turn a variables mapping into ``-var key=value`` arguments.

    Keys are emitted in sorted order; empty values are skipped so Terraform
    falls back to the variable's default.
    """
    args: List[str] = list()
    for key in sorted(variables):
        value = variables[key]
        if value is None or value == "":
            continue
        args.extend(["-var", f"{key}={value}"])
    return args


def run_terraform(tfdir: str, args: List[str]) -> None:
    """Run ``terraform <args>`` in ``tfdir``.

    Raises:
        TerraformCommandError: On a non-zero exit status
    """
    cmd = ["terraform"] + args
    logger.info(f"Running {' '.join(cmd)} in {tfdir}")
    with working_directory(tfdir):
        result = subprocess.run(cmd)
    if result.returncode != 0:
        raise TerraformCommandError(
            f"'terraform {args[0]}' failed",
            context={"command": " ".join(cmd), "returncode": result.returncode},
        )


def tf_init(tfdir: str, bucket: str, prefix: str) -> None:
    """Initialise the working directory against the GCS remote state backend."""
    run_terraform(
        tfdir,
        [
            "init",
            "-reconfigure",
            "-input=false",
            f"-backend-config=bucket={bucket}",
            f"-backend-config=prefix={prefix}",
        ],
    )


def tf_apply(tfdir: str, variables: Dict[str, str], auto_approve: bool) -> None:
    args = ["apply"] + build_var_args(variables)
    if auto_approve:
        args.append("-auto-approve")
    run_terraform(tfdir, args)


def tf_destroy(tfdir: str, variables: Dict[str, str], auto_approve: bool) -> None:
    args = ["destroy"] + build_var_args(variables)
    if auto_approve:
        args.append("-auto-approve")
    run_terraform(tfdir, args)


def tf_output(tfdir: str) -> Dict[str, Any]:
    """Read root module outputs with ``terraform output -json``.

    Returns:
        Mapping of output name to its value; sensitive outputs are masked

    Raises:
        TerraformCommandError: If terraform fails or returns invalid JSON
    """
    with working_directory(tfdir):
        result = subprocess.run(
            ["terraform", "output", "-json"], capture_output=True, text=True
        )
    if result.returncode != 0:
        raise TerraformCommandError(
            "'terraform output' failed",
            context={"returncode": result.returncode, "stderr": result.stderr.strip()},
        )
    try:
        raw = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as e:
        raise TerraformCommandError(
            "Invalid JSON from 'terraform output -json'", context={"error": str(e)}
        ) from e
    outputs: Dict[str, Any] = dict()
    for name, details in raw.items():
        if details.get("sensitive"):
            outputs[name] = "(sensitive)"
        else:
            outputs[name] = details.get("value")
    return outputs

"""Customer variables and environment verification.

The blueprint is configured through environment variables, optionally kept in
a shell file (``vars.sh``) of ``export KEY=VALUE`` lines that is loaded before
each run.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional

import modules.config.blueprint_config as blueprint_config
from modules.exceptions import MissingEnvironmentError

logger = logging.getLogger(__name__)

VAR_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")


def _strip_value(raw: str) -> str:
    value = raw.strip()
    if value[:1] in ("'", '"'):
        closing = value.find(value[0], 1)
        if closing > 0:
            return value[1:closing]
    # Unquoted values may carry a trailing comment
    return value.split(" #", 1)[0].strip()


def parse_vars_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` assignments from shell variable file contents.

    Lines may be prefixed with ``export``. Blank lines, comments and anything
    that is not a plain assignment are ignored.

    Args:
        text: Contents of the variables file

    Returns:
        Mapping of variable name to value, in file order
    """
    parsed: Dict[str, str] = dict()
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        match = VAR_LINE.match(line)
        if not match:
            logger.debug(f"Skipping non-assignment line in vars file: {line}")
            continue
        parsed[match.group(1)] = _strip_value(match.group(2))
    return parsed


def load_vars_file(
    path: str, environ: Optional[MutableMapping[str, str]] = None
) -> Dict[str, str]:
    """Load a customer variables file into the environment.

    Non-empty values override what is already set, as sourcing the file would.
    Empty placeholders never clear a variable that is already set.

    Args:
        path: Path to the variables file
        environ: Environment mapping to update (default: os.environ)

    Returns:
        Parsed variables, or an empty dict when the file does not exist
    """
    if environ is None:
        environ = os.environ
    vars_path = Path(path)
    if not vars_path.is_file():
        logger.info(f"No variables file at {path}, using environment only")
        return {}
    parsed = parse_vars_text(vars_path.read_text(encoding="utf8"))
    for key, value in parsed.items():
        if value:
            environ[key] = value
        elif key not in environ:
            environ[key] = ""
    logger.debug(f"Loaded {len(parsed)} variable(s) from {path}")
    return parsed


def verify_env_vars(
    required: List[str], environ: Optional[MutableMapping[str, str]] = None
) -> Dict[str, str]:
    """Check every required environment variable is set and non-empty.

    Args:
        required: Variable names to check
        environ: Environment mapping to read (default: os.environ)

    Returns:
        Mapping of each required variable to its value

    Raises:
        MissingEnvironmentError: If any variable is unset or empty; all
            missing names are reported at once
    """
    if environ is None:
        environ = os.environ
    missing = [name for name in required if not environ.get(name, "").strip()]
    if missing:
        raise MissingEnvironmentError(
            f"Required environment variable(s) not set: {', '.join(missing)}",
            context={"missing": ",".join(missing)},
        )
    return {name: environ[name].strip() for name in required}


def bucket_name(value: str) -> str:
    """Strip an optional ``gs://`` scheme and trailing slash from a bucket name."""
    value = value.strip()
    if value.startswith("gs://"):
        value = value[len("gs://") :]
    return value.rstrip("/")


def blueprint_settings(
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """Resolve the settings a Terraform run needs from the environment.

    Returns:
        dict with ``project_id``, ``state_bucket`` (bare name, no scheme),
        ``state_prefix`` and ``region``

    Raises:
        MissingEnvironmentError: If a required variable is missing
    """
    if environ is None:
        environ = os.environ
    values = verify_env_vars(blueprint_config.REQUIRED_ENV_VARS, environ)
    return {
        "project_id": values["GOOGLE_PROJECT_ID"],
        "state_bucket": bucket_name(values["TF_STATE_BUCKET"]),
        "state_prefix": environ.get("TF_STATE_PREFIX")
        or blueprint_config.DEFAULT_STATE_PREFIX,
        "region": environ.get("GOOGLE_REGION") or blueprint_config.DEFAULT_REGION,
    }

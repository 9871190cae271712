"""Human-approved attestations for promoting an image between clusters.

Signing is delegated to ``gcloud beta container binauthz attestations
sign-and-create``; the policy that consumes the attestation is enforced by
Binary Authorization on each cluster.
"""

import logging
import re
import subprocess
from typing import List

import modules.config.blueprint_config as blueprint_config
from modules.exceptions import AttestationError

logger = logging.getLogger(__name__)

IMAGE_DIGEST = re.compile(r"^(?P<repository>[^@\s]+)@sha256:(?P<digest>[0-9a-f]{64})$")


def validate_image_digest(image: str) -> str:
    """Check an image reference is pinned by digest.

    Attestations bind to an exact artifact, so tags are refused.

    Args:
        image: Reference of the form ``REPOSITORY@sha256:<64 hex chars>``

    Returns:
        The stripped reference

    Raises:
        AttestationError: If the reference is not digest-pinned
    """
    image = image.strip()
    if not IMAGE_DIGEST.match(image):
        raise AttestationError(
            "Image must be referenced by digest (REPOSITORY@sha256:<digest>)",
            context={"image": image},
        )
    return image


def attestor_for_stage(stage: str) -> str:
    """Return the attestor that approves images into ``stage``.

    Raises:
        AttestationError: If the stage has no attestor
    """
    attestor = blueprint_config.STAGE_ATTESTORS.get(stage.lower())
    if attestor is None:
        raise AttestationError(
            f"No attestor for stage '{stage}'. "
            f"Must be one of: {', '.join(blueprint_config.STAGE_ATTESTORS)}",
            context={"stage": stage},
        )
    return attestor


def build_attest_command(
    image: str,
    stage: str,
    project: str,
    keyring: str = blueprint_config.KMS_KEYRING,
    location: str = blueprint_config.KMS_LOCATION,
    key_version: str = blueprint_config.KMS_KEY_VERSION,
) -> List[str]:
    """Build the gcloud command that signs ``image`` for ``stage``."""
    image = validate_image_digest(image)
    attestor = attestor_for_stage(stage)
    return [
        "gcloud",
        "beta",
        "container",
        "binauthz",
        "attestations",
        "sign-and-create",
        f"--project={project}",
        f"--artifact-url={image}",
        f"--attestor={attestor}",
        f"--attestor-project={project}",
        f"--keyversion-project={project}",
        f"--keyversion-location={location}",
        f"--keyversion-keyring={keyring}",
        f"--keyversion-key={attestor}{blueprint_config.KMS_KEY_SUFFIX}",
        f"--keyversion={key_version}",
    ]


def sign_and_create(
    image: str,
    stage: str,
    project: str,
    keyring: str = blueprint_config.KMS_KEYRING,
    location: str = blueprint_config.KMS_LOCATION,
    key_version: str = blueprint_config.KMS_KEY_VERSION,
) -> str:
    """Create a signed attestation for ``image`` with the stage's attestor.

    Returns:
        gcloud's standard output

    Raises:
        AttestationError: If the request is invalid or gcloud fails
    """
    cmd = build_attest_command(image, stage, project, keyring, location, key_version)
    logger.info(f"Creating {stage} attestation for {image}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise AttestationError(f"Failed to run gcloud: {e}") from e
    if result.returncode != 0:
        raise AttestationError(
            f"gcloud could not create the attestation: {result.stderr.strip()}",
            context={"stage": stage, "returncode": result.returncode},
        )
    return result.stdout

"""Custom exception types for the secure CI/CD blueprint tooling.

Library modules raise these; only the CLI turns them into a printed error
and a non-zero exit status.

Exception Hierarchy:
    BlueprintError (base)
    ├── MissingEnvironmentError - Required environment variables unset
    ├── MissingToolError - Required CLI tools absent or unusable
    ├── StateBucketError - Remote state bucket not accessible
    ├── TerraformCommandError - A terraform invocation failed
    ├── TerraformParsingError - Blueprint HCL could not be read
    ├── TemplateRenderError - Template substitution failed
    └── AttestationError - Attestation could not be created
"""

from typing import Any, Dict, Optional


class BlueprintError(Exception):
    """Base exception for all blueprint tooling errors.

    Attributes:
        message: Human-readable error description
        context: Additional contextual information (e.g., variable names, paths)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class MissingEnvironmentError(BlueprintError):
    """Raised when required environment variables are unset or empty.

    Examples:
        - GOOGLE_PROJECT_ID not exported and not present in vars.sh
        - TF_STATE_BUCKET exported as an empty string
    """

    pass


class MissingToolError(BlueprintError):
    """Raised when a required CLI tool is missing or reports an unusable version."""

    pass


class StateBucketError(BlueprintError):
    """Raised when the Terraform remote state bucket cannot be listed."""

    pass


class TerraformCommandError(BlueprintError):
    """Raised when a terraform command exits non-zero or returns bad output."""

    pass


class TerraformParsingError(BlueprintError):
    """Raised when blueprint Terraform files cannot be found or parsed.

    Examples:
        - Terraform directory contains no .tf files
        - Invalid HCL2 syntax
        - Unreadable terraform.tfvars
    """

    pass


class TemplateRenderError(BlueprintError):
    """Raised when a template placeholder is missing or the result is not YAML."""

    pass


class AttestationError(BlueprintError):
    """Raised when an attestation request is invalid or gcloud rejects it."""

    pass

# Secure CI/CD Blueprint Configuration
# Platform: Google Cloud (google provider)
# Flow: dev cluster > qa cluster > prod cluster, gated by Binary Authorization

# Customer variables file sourced before every run
DEFAULT_VARS_FILE = "vars.sh"

# Directory holding the Terraform blueprint
DEFAULT_TF_DIR = "terraform"

# Environment variables that must be set before provisioning or cleanup
REQUIRED_ENV_VARS = ["GOOGLE_PROJECT_ID", "TF_STATE_BUCKET"]

# CLI tools that must be on PATH
REQUIRED_CLI_TOOLS = ["gcloud", "terraform", "gsutil"]

# Only Terraform 1.x is supported by the blueprint
TERRAFORM_SUPPORTED_MAJOR = 1

# Optional environment variables and their defaults
DEFAULT_REGION = "us-central1"
DEFAULT_STATE_PREFIX = "secure-cicd"

# Promotion environments, in order
ENVIRONMENTS = ["dev", "qa", "prod"]

# Stages a human can approve an image into, mapped to the attestor that signs it
STAGE_ATTESTORS = {
    "qa": "qa-attestor",
    "prod": "prod-attestor",
}

# KMS layout used by the attestors (see terraform/binauthz.tf)
KMS_KEYRING = "binauthz-keyring"
KMS_LOCATION = "global"
KMS_KEY_SUFFIX = "-key"
KMS_KEY_VERSION = "1"

# Declared resources are grouped into these categories by type prefix.
# First matching prefix wins.
RESOURCE_CATEGORIES = [
    ("clusters", ["google_container_cluster", "google_container_node_pool"]),
    (
        "identity",
        [
            "google_service_account",
            "google_project_iam_",
            "google_kms_crypto_key_iam_",
        ],
    ),
    ("signing", ["google_kms_"]),
    (
        "attestation",
        [
            "google_binary_authorization_",
            "google_container_analysis_note",
        ],
    ),
    ("secrets", ["google_secret_manager_"]),
]

# Category for resources matching no prefix above
DEFAULT_CATEGORY = "other"

# Status markers printed ahead of progress lines
FANCY_OK = "[ OK ]"
FANCY_FAIL = "[FAIL]"
FANCY_NONE = "[ .. ]"

"""Unit tests for modules/fileparser.py"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from modules.exceptions import TerraformParsingError
from modules.fileparser import (
    categorize_resources,
    collect_resources,
    find_tf_files,
    parse_tf_files,
    read_tfsource,
    resource_category,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
BLUEPRINT_DIR = str(FIXTURES_DIR / "blueprint")


class TestFindTfFiles(unittest.TestCase):
    def test_finds_sorted_tf_files_only(self):
        paths = find_tf_files(BLUEPRINT_DIR)
        self.assertEqual([Path(p).name for p in paths], ["attestors.tf", "main.tf"])

    def test_empty_directory(self):
        with self.assertRaises(TerraformParsingError):
            find_tf_files(str(FIXTURES_DIR / "empty_blueprint"))

    def test_missing_directory(self):
        with self.assertRaises(TerraformParsingError):
            find_tf_files(str(FIXTURES_DIR / "does_not_exist"))


class TestParseTfFiles:
    def test_invalid_hcl_names_file(self, tmp_path):
        bad = tmp_path / "bad.tf"
        bad.write_text('resource "google_kms_key_ring" {\n  name = \n')
        try:
            parse_tf_files([str(bad)])
        except TerraformParsingError as e:
            assert e.context["file"] == str(bad)
        else:
            raise AssertionError("TerraformParsingError not raised")


class TestResourceCategory(unittest.TestCase):
    def test_known_categories(self):
        cases = {
            "google_container_cluster.cluster": "clusters",
            "google_kms_key_ring.keyring": "signing",
            "google_kms_crypto_key.attestor_key": "signing",
            "google_kms_crypto_key_iam_member.attestor_signer": "identity",
            "google_binary_authorization_policy.policy": "attestation",
            "google_container_analysis_note.note": "attestation",
            "google_service_account.pipeline": "identity",
            "google_project_iam_member.pipeline_roles": "identity",
            "google_secret_manager_secret.pipeline_key": "secrets",
        }
        for address, category in cases.items():
            with self.subTest(address=address):
                self.assertEqual(resource_category(address), category)

    def test_unknown_falls_back_to_other(self):
        self.assertEqual(resource_category("google_storage_bucket.b"), "other")

    def test_categorize_keeps_every_category(self):
        grouped = categorize_resources(["google_service_account.pipeline"])
        self.assertEqual(
            list(grouped),
            ["clusters", "identity", "signing", "attestation", "secrets", "other"],
        )
        self.assertEqual(grouped["identity"], ["google_service_account.pipeline"])
        self.assertEqual(grouped["clusters"], [])


class TestCollectResources(unittest.TestCase):
    def test_addresses_in_declaration_order(self):
        parsed = {
            "a.tf": {
                "resource": [
                    {"google_kms_key_ring": {"keyring": {}}},
                    {"google_container_cluster": {"dev": {}, "qa": {}}},
                ]
            },
            "b.tf": {"variable": [{"project_id": {}}]},
        }
        self.assertEqual(
            collect_resources(parsed),
            [
                "google_kms_key_ring.keyring",
                "google_container_cluster.dev",
                "google_container_cluster.qa",
            ],
        )

    def test_no_resources(self):
        self.assertEqual(collect_resources({"a.tf": {}}), [])


class TestReadTfsource(unittest.TestCase):
    """End to end inventory of the fixture blueprint."""

    @classmethod
    def setUpClass(cls):
        cls.tfdata = read_tfsource(BLUEPRINT_DIR)

    def test_resources(self):
        self.assertEqual(
            sorted(self.tfdata["resources"]),
            [
                "google_binary_authorization_attestor.qa",
                "google_container_cluster.dev",
                "google_kms_crypto_key_iam_member.signer",
                "google_kms_key_ring.keyring",
                "google_service_account.pipeline",
                "google_storage_bucket.artifacts",
            ],
        )

    def test_categories(self):
        categories = self.tfdata["categories"]
        self.assertEqual(categories["clusters"], ["google_container_cluster.dev"])
        self.assertEqual(categories["attestation"], ["google_binary_authorization_attestor.qa"])
        self.assertEqual(categories["other"], ["google_storage_bucket.artifacts"])
        self.assertEqual(
            sorted(categories["identity"]),
            ["google_kms_crypto_key_iam_member.signer", "google_service_account.pipeline"],
        )

    def test_variables_and_outputs(self):
        self.assertEqual(sorted(self.tfdata["variables"]), ["project_id", "region"])
        self.assertEqual(self.tfdata["outputs"], ["attestor"])

    def test_tfvars_loaded(self):
        self.assertEqual(
            self.tfdata["tfvars"],
            {"project_id": "demo-project", "region": "europe-west1"},
        )


if __name__ == "__main__":
    unittest.main()

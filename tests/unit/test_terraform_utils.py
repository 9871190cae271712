"""Unit tests for modules/utils/terraform_utils.py"""

import json
import os
import tempfile
import unittest
import sys
from pathlib import Path

# Add modules directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from modules.utils.terraform_utils import normalise, tfvar_read, unquote
from modules.exceptions import TerraformParsingError


class TestUnquote(unittest.TestCase):
    def test_quoted_string(self):
        self.assertEqual(unquote('"us-central1"'), "us-central1")

    def test_plain_values_unchanged(self):
        self.assertEqual(unquote("us-central1"), "us-central1")
        self.assertEqual(unquote(3), 3)
        self.assertEqual(unquote('"'), '"')

    def test_normalise_nested(self):
        data = {'"google_container_cluster"': {'"dev"': {"name": '"dev-cluster"', "n": [1, '"a"']}}}
        self.assertEqual(
            normalise(data),
            {"google_container_cluster": {"dev": {"name": "dev-cluster", "n": [1, "a"]}}},
        )


class TestTfvarRead(unittest.TestCase):
    """Test tfvar_read() for JSON and HCL variable files."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def test_json_tfvars(self):
        path = self._write(
            "terraform.tfvars.json", json.dumps({"project_id": "p", "count": 3})
        )
        self.assertEqual(tfvar_read(path), {"project_id": "p", "count": 3})

    def test_hcl_tfvars(self):
        path = self._write(
            "terraform.tfvars",
            'project_id = "demo"\nenvironments = ["dev", "qa", "prod"]\n',
        )
        result = tfvar_read(path)
        self.assertEqual(result["project_id"], "demo")
        self.assertEqual(result["environments"], ["dev", "qa", "prod"])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            tfvar_read(os.path.join(self.tmpdir.name, "missing.tfvars"))

    def test_invalid_file(self):
        path = self._write("bad.tfvars", "project_id = = =\n{{{")
        with self.assertRaises(TerraformParsingError):
            tfvar_read(path)


if __name__ == "__main__":
    unittest.main()

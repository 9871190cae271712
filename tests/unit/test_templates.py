"""Unit tests for modules/templates.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from modules.exceptions import TemplateRenderError
from modules.templates import (
    parse_overrides,
    placeholders,
    render_template,
    render_text,
)


class TestParseOverrides:
    def test_pairs(self):
        assert parse_overrides(["A=1", "B=x=y", "C="]) == {"A": "1", "B": "x=y", "C": ""}

    @pytest.mark.parametrize("pair", ["novalue", "=value"])
    def test_malformed(self, pair):
        with pytest.raises(TemplateRenderError):
            parse_overrides([pair])


class TestRenderText:
    def test_placeholders_listed_once(self):
        assert placeholders("${A} $B ${A} $$C") == ["A", "B"]

    def test_substitution_and_escape(self):
        text = "name: ${APP_NAME}\nscript: echo $$HOME\n"
        assert render_text(text, {"APP_NAME": "web"}) == "name: web\nscript: echo $HOME\n"

    def test_missing_placeholder_named(self):
        with pytest.raises(TemplateRenderError) as excinfo:
            render_text("a: ${A}\nb: ${B}\n", {"A": "1"})
        assert "B" in excinfo.value.message
        assert "A," not in excinfo.value.message

    def test_empty_value_counts_as_missing(self):
        with pytest.raises(TemplateRenderError):
            render_text("project: ${GOOGLE_PROJECT_ID}\n", {"GOOGLE_PROJECT_ID": ""})

    def test_invalid_yaml_rejected(self):
        with pytest.raises(TemplateRenderError):
            render_text("key: ${V}\n", {"V": "[unclosed"})

    def test_multi_document(self):
        rendered = render_text("a: ${X}\n---\nb: ${X}\n", {"X": "1"})
        assert rendered.count("1") == 2


class TestRenderTemplate:
    def test_precedence(self, tmp_path):
        template = tmp_path / "t.yaml.tmpl"
        template.write_text("region: ${GOOGLE_REGION}\napp: ${APP_NAME}\n")
        rendered = render_template(
            str(template),
            overrides={"APP_NAME": "override"},
            environ={"APP_NAME": "env", "GOOGLE_REGION": ""},
            defaults={"GOOGLE_REGION": "us-central1"},
        )
        assert rendered == "region: us-central1\napp: override\n"

    def test_missing_template(self, tmp_path):
        with pytest.raises(TemplateRenderError):
            render_template(str(tmp_path / "missing.tmpl"), environ={})

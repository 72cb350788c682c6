"""Tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from notoextract.cli import app

runner = CliRunner()


class TestCLI:
    """Tests for CLI commands."""

    def test_status(self):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "Remote OCR" in result.output
        assert "Max pages per request" in result.output

    def test_plan(self, make_pdf, tmp_path):
        pdf_path = tmp_path / "notes.pdf"
        pdf_path.write_bytes(make_pdf([f"page {n}" for n in range(1, 8)]))

        result = runner.invoke(app, ["plan", str(pdf_path)])

        assert result.exit_code == 0
        assert "7 pages" in result.output
        assert "7-7" in result.output

    def test_plan_invalid_pdf(self, tmp_path):
        bad_path = tmp_path / "bad.pdf"
        bad_path.write_bytes(b"not a pdf")

        result = runner.invoke(app, ["plan", str(bad_path)])

        assert result.exit_code == 1
        assert "Cannot plan bad.pdf" in result.output

    def test_extract_text_file(self, tmp_path):
        text_path = tmp_path / "reading.txt"
        text_path.write_text("Chapter summaries for the history seminar, weeks one through four.")

        result = runner.invoke(app, ["extract", str(text_path), "--details"])

        assert result.exit_code == 0
        assert "history seminar" in result.output
        assert "plain_text" in result.output

    @pytest.mark.parametrize("args", [["extract"], ["plan"]])
    def test_missing_path(self, args):
        result = runner.invoke(app, args)
        assert result.exit_code != 0

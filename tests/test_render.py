"""Tests for PDF rendering stage."""

from unittest.mock import MagicMock

import pytest

from notoextract.pipeline.stage_render import PDFRenderer, open_pdf, read_pdf_info


class TestReadPDFInfo:
    """Tests for PDF metadata."""

    def test_page_count_and_title(self, make_pdf):
        with open_pdf(make_pdf(["one", "two", "three"], title="Lab Report")) as pdf_doc:
            info = read_pdf_info(pdf_doc)

        assert info.page_count == 3
        assert info.title == "Lab Report"
        assert info.author is None
        assert not info.encrypted

    def test_missing_metadata(self):
        pdf_doc = MagicMock()
        pdf_doc.metadata = None
        pdf_doc.page_count = 2
        pdf_doc.needs_pass = False

        info = read_pdf_info(pdf_doc)

        assert info.page_count == 2
        assert info.title is None

    def test_open_invalid_buffer(self):
        with pytest.raises(Exception):
            open_pdf(b"not a pdf at all")


class TestPDFRenderer:
    """Tests for PDF rendering."""

    def test_renderer_initialization(self):
        """Test renderer initializes with correct settings."""
        assert PDFRenderer(dpi=300).dpi == 300

    def test_renderer_default_settings(self):
        """Test renderer uses settings defaults."""
        assert PDFRenderer().dpi == 150

    def test_render_page(self, make_pdf, output_dir):
        """Test single page rendering."""
        renderer = PDFRenderer(dpi=72)

        with open_pdf(make_pdf(["first", "second"])) as pdf_doc:
            info = renderer.render_page(pdf_doc, 1, output_dir)

        assert info.page_number == 2
        assert info.path == output_dir / "page_0002.png"
        assert info.path.exists()
        assert info.file_size_bytes > 0
        assert info.dpi == 72
        # Default fitz page is A4 (595x842 pt); at 72 DPI pixels equal points
        assert info.width_pixels == 595
        assert info.height_pixels == 842

    def test_render_scales_with_dpi(self, make_pdf, output_dir):
        with open_pdf(make_pdf(["page"])) as pdf_doc:
            low = PDFRenderer(dpi=72).render_page(pdf_doc, 0, output_dir)
            high = PDFRenderer(dpi=144).render_page(pdf_doc, 0, output_dir)

        assert high.width_pixels == pytest.approx(low.width_pixels * 2, abs=1)

"""Tests for the document renderer (HTML via Jinja2, PDF engine faked)."""

import asyncio
import copy
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from cvgen.config import settings
from cvgen.errors import RenderError
from cvgen.services import renderer
from cvgen.services.renderer import TEMPLATES, group_skills, list_templates, render, render_html

from conftest import SAMPLE_CONTENT

META = {
    "fullName": "Ada Lovelace",
    "email": "ada@example.com",
    "location": "Lisbon",
    "photoUrl": None,
    "jobTitle": "Staff Python Engineer",
    "company": "Globex",
    "generationDate": "January 01, 2026",
    "language": "English",
}


async def _fake_pdf(html, output_path):
    Path(output_path).write_bytes(b"%PDF-1.4\n" + html.encode("utf-8"))


class TestGroupSkills:
    """Order-preserving category grouping."""

    def test_first_seen_category_order(self):
        skills = [
            {"name": "Python", "category": "Languages"},
            {"name": "Docker", "category": "DevOps"},
            {"name": "Go", "category": "Languages"},
            {"name": "Terraform", "category": "DevOps"},
        ]
        groups = group_skills(skills)
        assert [g["category"] for g in groups] == ["Languages", "DevOps"]
        assert [s["name"] for s in groups[0]["skills"]] == ["Python", "Go"]
        assert [s["name"] for s in groups[1]["skills"]] == ["Docker", "Terraform"]

    def test_missing_category_goes_to_default(self):
        """Absent or blank categories fall into the default bucket."""
        groups = group_skills([{"name": "Chess"}, {"name": "Go", "category": "  "}])
        assert groups == [{"category": "General", "skills": [{"name": "Chess"}, {"name": "Go", "category": "  "}]}]

    def test_flatten_recovers_grouped_order(self):
        """Flattening the groups gives the skills ordered by category, stable within each."""
        skills = [
            {"name": "a", "category": "X"},
            {"name": "b", "category": "Y"},
            {"name": "c", "category": "X"},
            {"name": "d"},
            {"name": "e", "category": "Y"},
        ]
        flat = [s["name"] for g in group_skills(skills) for s in g["skills"]]
        assert flat == ["a", "c", "b", "e", "d"]

    def test_contiguous_round_trip(self):
        """Already-grouped input survives grouping then flattening unchanged."""
        skills = [{"name": n, "category": c} for n, c in [("a", "X"), ("b", "X"), ("c", "Y")]]
        assert [s for g in group_skills(skills) for s in g["skills"]] == skills

    def test_empty(self):
        assert group_skills([]) == []


class TestRenderHtml:
    """Template output."""

    def test_every_template_renders(self):
        """All registered templates render the core content."""
        for template_id in TEMPLATES:
            html = render_html(SAMPLE_CONTENT, META, template_id)
            assert "Ada Lovelace" in html
            assert "Senior Backend Engineer" in html
            assert "Programming Languages" in html
            assert "Cut invoice latency by 40%" in html

    def test_localized_section_titles(self):
        """Section titles come from the generated document."""
        content = copy.deepcopy(SAMPLE_CONTENT)
        content["sectionTitles"]["workExperience"] = "Berufserfahrung"
        html = render_html(content, META, "modern")
        assert "Berufserfahrung" in html
        assert "Work Experience" not in html

    def test_blank_title_falls_back(self):
        content = copy.deepcopy(SAMPLE_CONTENT)
        content["sectionTitles"]["skills"] = ""
        assert "Skills" in render_html(content, META, "classic")

    def test_html_is_escaped(self):
        """Generated text cannot inject markup."""
        content = copy.deepcopy(SAMPLE_CONTENT)
        content["professionalSummary"] = "<script>alert(1)</script>"
        html = render_html(content, META, "minimal")
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_photo_only_when_given(self):
        assert 'class="photo"' not in render_html(SAMPLE_CONTENT, META, "modern")
        html = render_html(SAMPLE_CONTENT, {**META, "photoUrl": "https://cdn/p.png"}, "modern")
        assert 'src="https://cdn/p.png"' in html

    def test_unknown_template(self):
        with pytest.raises(RenderError, match="Unknown template"):
            render_html(SAMPLE_CONTENT, META, "neon")


class TestRegistry:
    """Template registry."""

    def test_free_and_premium(self):
        templates = {t["id"]: t["premium"] for t in list_templates()}
        assert templates["modern"] is False
        assert templates["classic"] is False
        assert templates["executive"] is True
        assert set(templates) == {"modern", "classic", "professional", "minimal", "creative", "executive"}


class TestRender:
    """PDF step with the browser replaced."""

    def test_render_writes_file(self, tmp_path):
        target = tmp_path / "out" / "cv-1.pdf"
        path = asyncio.run(render(SAMPLE_CONTENT, META, "modern", target, pdf_engine=_fake_pdf))
        assert path == str(target)
        assert target.read_bytes().startswith(b"%PDF")
        assert not (tmp_path / "out" / "cv-1.pdf.tmp").exists()

    def test_failed_rerender_keeps_previous_file(self, tmp_path):
        """A failing engine leaves the earlier PDF in place and cleans up."""
        target = tmp_path / "cv-1.pdf"
        asyncio.run(render(SAMPLE_CONTENT, META, "modern", target, pdf_engine=_fake_pdf))
        before = target.read_bytes()

        async def broken(html, output_path):
            Path(output_path).write_bytes(b"partial")
            raise PlaywrightError("browser crashed")

        with pytest.raises(RenderError, match="browser crashed"):
            asyncio.run(render(SAMPLE_CONTENT, META, "classic", target, pdf_engine=broken))
        assert target.read_bytes() == before
        assert not (tmp_path / "cv-1.pdf.tmp").exists()

    def test_render_timeout(self, tmp_path, monkeypatch):
        async def hang(html, output_path):
            await asyncio.sleep(5)

        monkeypatch.setattr(settings, "PDF_RENDER_TIMEOUT_SECONDS", 0.01)
        with pytest.raises(RenderError, match="timed out"):
            asyncio.run(render(SAMPLE_CONTENT, META, "modern", tmp_path / "cv.pdf", pdf_engine=hang))

    def test_storage_and_url_keyed_by_id(self, storage_dir):
        assert renderer.storage_path_for("abc") == storage_dir / "cv-abc.pdf"
        assert renderer.download_url_for("abc").endswith("/api/generated-cv/abc/download")


class _FakePage:
    def __init__(self, fail_on_fill=None):
        self.fail_on_fill = fail_on_fill
        self.pdf_calls = []
        self.closed = False

    async def set_content(self, html, wait_until=None):
        if self.fail_on_fill is not None:
            raise self.fail_on_fill

    async def pdf(self, path, **options):
        self.pdf_calls.append(options)
        Path(path).write_bytes(b"%PDF-1.4\n")

    async def close(self):
        self.closed = True


class _FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class _FakePlaywright:
    """Stands in for ``async_playwright()``: an async context exposing ``chromium``."""

    def __init__(self, browser):
        self.browser = browser
        self.chromium = self

    async def launch(self, **kwargs):
        return self.browser

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def _install_browser(monkeypatch, page) -> _FakeBrowser:
    browser = _FakeBrowser(page)
    monkeypatch.setattr(renderer, "async_playwright", lambda: _FakePlaywright(browser))
    return browser


class TestHtmlToPdf:
    """The browser printer with Playwright replaced."""

    def test_prints_a4_without_margins(self, tmp_path, monkeypatch):
        page = _FakePage()
        browser = _install_browser(monkeypatch, page)
        target = tmp_path / "cv.pdf"

        asyncio.run(render(SAMPLE_CONTENT, META, "modern", target))

        assert page.pdf_calls == [renderer.PDF_OPTIONS]
        assert page.pdf_calls[0]["format"] == "A4"
        assert page.pdf_calls[0]["print_background"] is True
        assert set(page.pdf_calls[0]["margin"].values()) == {"0px"}
        assert page.closed and browser.closed
        assert target.read_bytes().startswith(b"%PDF")

    def test_teardown_when_filling_page_fails(self, tmp_path, monkeypatch):
        """Page and browser are closed even when loading the HTML raises."""
        page = _FakePage(fail_on_fill=PlaywrightError("navigation failed"))
        browser = _install_browser(monkeypatch, page)
        target = tmp_path / "cv.pdf"

        with pytest.raises(RenderError, match="navigation failed"):
            asyncio.run(render(SAMPLE_CONTENT, META, "modern", target))

        assert page.closed
        assert browser.closed
        assert page.pdf_calls == []
        assert not target.exists()
        assert not (tmp_path / "cv.pdf.tmp").exists()


class TestLanguageCode:
    """The HTML lang attribute follows the content language."""

    def test_names_and_codes(self):
        assert renderer.language_code("German") == "de"
        assert renderer.language_code(" portuguese ") == "pt"
        assert renderer.language_code("fr") == "fr"
        assert renderer.language_code("Klingon") == "en"
        assert renderer.language_code(None) == "en"

    def test_document_lang(self):
        assert '<html lang="en">' in render_html(SAMPLE_CONTENT, META, "modern")
        html = render_html(SAMPLE_CONTENT, {**META, "language": "Spanish"}, "classic")
        assert '<html lang="es">' in html

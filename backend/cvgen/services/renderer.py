"""Document renderer: generated CV content plus a template, to HTML, to an A4 PDF.

HTML comes from Jinja2 templates in ``cvgen/templates/cv``; the PDF is printed
by headless Chromium (Playwright). The browser is opened per render and always
closed again, whatever happens while the page is being filled or printed.
"""

import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError
from playwright.async_api import Error as PlaywrightError, async_playwright

from cvgen.config import settings
from cvgen.errors import RenderError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "cv"

# id -> display name, premium flag. Premium gating happens in the calling layer.
TEMPLATES: dict[str, dict] = {
    "modern": {"name": "Modern", "premium": False},
    "classic": {"name": "Classic", "premium": False},
    "professional": {"name": "Professional", "premium": True},
    "minimal": {"name": "Minimal", "premium": True},
    "creative": {"name": "Creative", "premium": True},
    "executive": {"name": "Executive", "premium": True},
}

DEFAULT_TEMPLATE = "modern"
DEFAULT_SKILL_CATEGORY = "General"

DEFAULT_SECTION_TITLES = {
    "professionalSummary": "Professional Summary",
    "workExperience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
    "projects": "Projects",
    "certifications": "Certifications",
    "languages": "Languages",
}

PDF_OPTIONS = {
    "format": "A4",
    "print_background": True,
    "margin": {"top": "0px", "right": "0px", "bottom": "0px", "left": "0px"},
}

# Content language name -> HTML lang attribute. Two-letter codes pass through.
LANGUAGE_CODES = {
    "english": "en",
    "portuguese": "pt",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "dutch": "nl",
    "polish": "pl",
    "swedish": "sv",
    "japanese": "ja",
    "chinese": "zh",
}


def list_templates() -> list[dict]:
    return [{"id": tid, **info} for tid, info in TEMPLATES.items()]


def is_premium(template_id: str) -> bool:
    return TEMPLATES.get(template_id, {}).get("premium", False)


def language_code(language: str | None) -> str:
    name = (language or "").strip().lower()
    if len(name) == 2 and name.isalpha():
        return name
    return LANGUAGE_CODES.get(name, "en")


def group_skills(skills: list[dict]) -> list[dict]:
    """Group skills by category, keeping first-seen category order and in-category order.

    Skills without a category land in DEFAULT_SKILL_CATEGORY. When a category's
    skills are already contiguous, flattening the groups gives back the input.
    """
    groups: dict[str, list[dict]] = {}
    for skill in skills:
        category = (skill.get("category") or "").strip() or DEFAULT_SKILL_CATEGORY
        groups.setdefault(category, []).append(skill)
    return [{"category": category, "skills": items} for category, items in groups.items()]


def _section_titles(content: dict) -> dict:
    titles = dict(DEFAULT_SECTION_TITLES)
    for key, value in (content.get("sectionTitles") or {}).items():
        if key in titles and value and str(value).strip():
            titles[key] = value
    return titles


def _jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_html(content: dict, metadata: dict, template_id: str) -> str:
    """Render the CV as a standalone HTML page.

    ``metadata`` carries what the AI document does not: fullName, contact
    details, photoUrl, jobTitle, company, generationDate, language.
    """
    if template_id not in TEMPLATES:
        raise RenderError(f"Unknown template: {template_id}")

    try:
        template = _jinja_env().get_template(f"{template_id}.html.j2")
        return template.render(
            cv=content,
            titles=_section_titles(content),
            skill_groups=group_skills(content.get("skills") or []),
            meta={
                **metadata,
                "fullName": metadata.get("fullName") or "Candidate",
                "generationDate": metadata.get("generationDate")
                or datetime.now(timezone.utc).strftime("%B %d, %Y"),
                "languageCode": metadata.get("languageCode")
                or language_code(metadata.get("language")),
            },
            template_name=TEMPLATES[template_id]["name"],
        )
    except TemplateError as e:
        raise RenderError(f"Template '{template_id}' failed to render: {e}") from e


async def html_to_pdf(html: str, output_path: Path) -> None:
    """Print ``html`` to an A4 PDF with zero margins and backgrounds on."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(args=["--no-sandbox", "--disable-setuid-sandbox"])
        try:
            page = await browser.new_page()
            try:
                await page.set_content(html, wait_until="networkidle")
                await page.pdf(path=str(output_path), **PDF_OPTIONS)
            finally:
                await page.close()
        finally:
            await browser.close()


def storage_path_for(record_id: str) -> Path:
    return Path(settings.CV_STORAGE_DIR) / f"cv-{record_id}.pdf"


def download_url_for(record_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/api/generated-cv/{record_id}/download"


async def render(
    content: dict,
    metadata: dict,
    template_id: str,
    output_path: Path,
    pdf_engine=None,
) -> str:
    """Render ``content`` with ``template_id`` into ``output_path`` and return the path.

    The PDF is written next to the target and moved into place only when
    complete, so a failed re-render leaves the previous file untouched.
    ``pdf_engine`` defaults to the headless-browser printer.
    """
    html = render_html(content, metadata, template_id)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_name(output_path.name + ".tmp")

    logger.info("Rendering %s with template %s", output_path.name, template_id)
    try:
        await asyncio.wait_for(
            (pdf_engine or html_to_pdf)(html, tmp_path),
            timeout=settings.PDF_RENDER_TIMEOUT_SECONDS,
        )
        os.replace(tmp_path, output_path)
    except asyncio.TimeoutError as e:
        raise RenderError(
            f"PDF rendering timed out after {settings.PDF_RENDER_TIMEOUT_SECONDS:.0f}s"
        ) from e
    except (PlaywrightError, OSError) as e:
        raise RenderError(f"PDF rendering failed: {e}") from e
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    return str(output_path)

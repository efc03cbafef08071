"""Prompt builder — turns a profile snapshot (and optional job posting) into the CV instruction.

The output is plain text and fully determined by its inputs. Both branches
(job-based and profile-based) end with the same rule block and JSON schema,
so the model is always asked for one localized, schema-conformant, factual
JSON object no matter which tone or language was picked.
"""

import json

DEFAULT_TONE = "Professional"
DEFAULT_LANGUAGE = "English"

SYSTEM_PROMPT = (
    "You are an expert CV writer and career coach. You only ever answer with a "
    "single JSON object that follows the requested structure exactly."
)

TONE_GUIDANCE = {
    "professional": "Balanced, polished and formal. Clear statements of responsibility and impact.",
    "technical": "Lead with tools, stacks, architectures and measurable engineering outcomes.",
    "leadership": "Emphasise ownership, team leadership, strategic decisions and business impact.",
    "creative": "Expressive and vivid while staying credible; show originality and initiative.",
    "entry-level": "Focus on potential, education, projects, learning speed and transferable skills.",
    "academic": "Detailed and formal; foreground research, publications, teaching and methodology.",
}

OUTPUT_SCHEMA = {
    "sectionTitles": {
        "professionalSummary": "string",
        "workExperience": "string",
        "education": "string",
        "skills": "string",
        "projects": "string",
        "certifications": "string",
        "languages": "string",
    },
    "professionalSummary": "string",
    "workExperience": [
        {
            "company": "string",
            "position": "string",
            "location": "string or null",
            "startDate": "string",
            "endDate": "string or null",
            "description": "string",
            "achievements": ["string"],
        }
    ],
    "education": [
        {
            "institution": "string",
            "degree": "string",
            "fieldOfStudy": "string or null",
            "startDate": "string",
            "endDate": "string or null",
            "gpa": "number or null",
            "description": "string or null",
        }
    ],
    "skills": [
        {"name": "string", "category": "string", "proficiencyLevel": "string or null"}
    ],
    "projects": [
        {
            "name": "string",
            "description": "string or null",
            "technologies": ["string"],
            "url": "string or null",
            "githubUrl": "string or null",
        }
    ],
    "certifications": [
        {"name": "string", "issuer": "string", "issueDate": "string", "expiryDate": "string or null"}
    ],
    "languages": [{"name": "string", "proficiency": "string or null"}],
}


def _or(value, fallback: str = "Not provided") -> str:
    if value is None or value == "" or value == []:
        return fallback
    return str(value)


def _join(items: list | None, fallback: str = "Not specified") -> str:
    return ", ".join(str(i) for i in items) if items else fallback


def _tone_guidance(tone: str) -> str:
    guidance = TONE_GUIDANCE.get(tone.strip().lower())
    if guidance:
        return f"{tone}: {guidance}"
    return f"{tone}: adopt this tone consistently in the summary and experience descriptions."


def _format_profile(profile: dict) -> str:
    lines = [
        "**Candidate Profile:**",
        f"- Name: {_or(profile.get('fullName'))}",
        f"- Location: {_or(profile.get('location'))}",
        f"- LinkedIn: {_or(profile.get('linkedinUrl'))}",
        f"- GitHub: {_or(profile.get('githubUrl'))}",
        f"- Portfolio: {_or(profile.get('portfolioUrl'))}",
        f"- Current Summary: {_or(profile.get('professionalSummary'))}",
        "",
        "**Work Experience:**",
    ]
    for exp in profile.get("workExperience") or []:
        lines += [
            f"- {exp['position']} at {exp['company']} ({exp['startDate']} - {exp.get('endDate') or 'Present'})",
            f"  Location: {_or(exp.get('location'), 'Not specified')}",
            f"  Description: {_or(exp.get('description'))}",
            f"  Achievements: {json.dumps(exp.get('achievements') or [], ensure_ascii=False)}",
        ]
    if not profile.get("workExperience"):
        lines.append("- None")

    lines += ["", "**Education:**"]
    for edu in profile.get("education") or []:
        lines += [
            f"- {edu['degree']} in {_or(edu.get('fieldOfStudy'), 'Not specified')} from {edu['institution']}",
            f"  {edu['startDate']} - {edu.get('endDate') or 'Present'}",
            f"  GPA: {_or(edu.get('gpa'))}",
            f"  Description: {_or(edu.get('description'))}",
        ]
    if not profile.get("education"):
        lines.append("- None")

    lines += ["", "**Skills:**"]
    for skill in profile.get("skills") or []:
        lines.append(
            f"- {skill['name']} ({_or(skill.get('category'), 'Uncategorized')}, "
            f"{_or(skill.get('proficiencyLevel'), 'Not specified')})"
        )
    if not profile.get("skills"):
        lines.append("- None")

    lines += ["", "**Projects:**"]
    for proj in profile.get("projects") or []:
        lines += [
            f"- {proj['name']}",
            f"  Description: {_or(proj.get('description'))}",
            f"  Technologies: {json.dumps(proj.get('technologies') or [], ensure_ascii=False)}",
            f"  URL: {_or(proj.get('url'))}",
            f"  GitHub: {_or(proj.get('githubUrl'))}",
        ]
    if not profile.get("projects"):
        lines.append("- None")

    lines += ["", "**Certifications:**"]
    for cert in profile.get("certifications") or []:
        expiry = f", expires {cert['expiryDate']}" if cert.get("expiryDate") else ""
        lines.append(f"- {cert['name']} by {cert['issuer']} ({cert['issueDate']}{expiry})")
    if not profile.get("certifications"):
        lines.append("- None")

    lines += ["", "**Languages:**"]
    for lang in profile.get("languages") or []:
        lines.append(f"- {lang['name']} ({_or(lang.get('proficiency'), 'Not specified')})")
    if not profile.get("languages"):
        lines.append("- None")

    return "\n".join(lines)


def _format_job(job: dict) -> str:
    return "\n".join([
        "**Target Job Posting:**",
        f"- Title: {job['jobTitle']}",
        f"- Company: {_or(job.get('company'), 'Not specified')}",
        f"- Experience Level: {_or(job.get('experienceLevel'), 'Not specified')}",
        f"- Required Skills: {_join(job.get('requiredSkills'))}",
        f"- Keywords: {_join(job.get('keywords'))}",
        f"- Description: {job['jobDescription']}",
    ])


def _job_instructions(job: dict) -> list[str]:
    company = job.get("company") or "the hiring company"
    return [
        f"Write a compelling professional summary (2-4 sentences) that presents the candidate "
        f"as a strong fit for the {job['jobTitle']} role at {company}, explaining why their "
        f"background matches this role.",
        "Rewrite work experience descriptions and achievements to emphasise the responsibilities "
        "and results most relevant to the job's requirements, experience level and keywords.",
        "Put skills that match the required skills and keywords first; keep the others.",
        "Order projects by relevance to this job.",
        "Use the job posting's terminology where it truthfully describes the candidate's experience.",
    ]


def _profile_instructions() -> list[str]:
    return [
        "Write a comprehensive professional summary (3-4 sentences) that captures the candidate's "
        "overall career narrative, core expertise and strongest achievements.",
        "Rewrite work experience descriptions and achievements so they read as a coherent, "
        "well-rounded professional story across the whole profile.",
        "Keep every skill and group them into meaningful categories.",
        "Present projects in the order that best showcases the candidate's range.",
    ]


def _rules(language: str) -> list[str]:
    return [
        "Return ONLY one valid JSON object. No markdown, no code fences, no commentary before or after it.",
        "Follow the output structure below exactly: every key must be present, arrays may be empty, "
        "optional values are null when unknown.",
        "Never invent facts. Every employer, title, date, degree, skill, project, certification and "
        "language must come from the candidate profile above. Rephrasing is allowed; fabrication is not.",
        f"Write EVERY human-readable string in {language}, including all sectionTitles labels, "
        f"even when the profile or job posting is written in another language. Proper nouns "
        f"(company, institution, product and technology names) stay as they are.",
        "Give every skill a specific, meaningful category (for example \"Programming Languages\", "
        "\"Cloud & DevOps\", \"Data & Analytics\", \"Soft Skills\"). Never use a generic catch-all "
        "such as \"General\", \"Other\" or \"Misc\".",
        "Use strong action verbs and quantify achievements where the profile provides numbers.",
    ]


def build_prompt(
    profile: dict,
    job_posting: dict | None,
    tone: str = DEFAULT_TONE,
    language: str = DEFAULT_LANGUAGE,
) -> str:
    """Compose the CV generation instruction.

    Args:
        profile:     profile snapshot (see profile_service.profile_snapshot).
        job_posting: job posting snapshot, or None for a profile-based CV.
        tone:        free-form tone label; known labels get extra guidance.
        language:    output language for every human-readable string.
    """
    tone = tone or DEFAULT_TONE
    language = language or DEFAULT_LANGUAGE

    if job_posting:
        intro = (
            "Generate a CV tailored to the target job posting below, using only the "
            "candidate's profile as the source of facts."
        )
        instructions = _job_instructions(job_posting)
        context = [_format_job(job_posting), "", _format_profile(profile)]
    else:
        intro = (
            "Generate a complete, general-purpose CV from the candidate's whole profile. "
            "There is no specific target job."
        )
        instructions = _profile_instructions()
        context = [_format_profile(profile)]

    steps = instructions + [f"Tone: {_tone_guidance(tone)}"]
    rules = _rules(language)

    parts = [
        intro,
        "",
        *context,
        "",
        "**Instructions:**",
        *(f"{i}. {text}" for i, text in enumerate(steps, start=1)),
        "",
        "**Mandatory rules:**",
        *(f"- {text}" for text in rules),
        "",
        f"**Output language:** {language}",
        "",
        "**Output Format (exact structure):**",
        json.dumps(OUTPUT_SCHEMA, indent=2),
    ]
    return "\n".join(parts)


def build_job_analysis_prompt(job_description: str, profile: dict | None) -> str:
    """Instruction for the advisory job analysis (optionally with a profile match)."""
    schema = {
        "technicalSkills": ["string"],
        "softSkills": ["string"],
        "experienceLevel": "string",
        "keywords": ["string"],
        "roleExpectations": ["string"],
        "matchAnalysis": (
            {
                "matchPercentage": "number 0-100",
                "matchingSkills": ["string"],
                "missingSkills": ["string"],
                "strengths": ["string"],
                "gaps": ["string"],
            }
            if profile
            else None
        ),
    }
    parts = [
        "Analyze the job description below and extract its requirements.",
        "",
        "**Job Description:**",
        job_description,
    ]
    if profile:
        parts += [
            "",
            _format_profile(profile),
            "",
            "Compare the candidate against the job and fill matchAnalysis.",
        ]
    else:
        parts += ["", "No candidate profile is available: matchAnalysis must be null."]
    parts += [
        "",
        "Return ONLY one valid JSON object with exactly this structure:",
        json.dumps(schema, indent=2),
    ]
    return "\n".join(parts)

"""Generated CV schemas — the AI document shape plus request/response models."""

from typing import Optional

from pydantic import BaseModel, Field


# ── AI document (exact shape the model must return) ──────────────────────────

class SectionTitles(BaseModel):
    professionalSummary: str
    workExperience: str
    education: str
    skills: str
    projects: str
    certifications: str
    languages: str


class WorkExperienceEntry(BaseModel):
    company: str
    position: str
    location: Optional[str] = None
    startDate: str
    endDate: Optional[str] = None
    description: str
    achievements: list[str]


class EducationEntry(BaseModel):
    institution: str
    degree: str
    fieldOfStudy: Optional[str] = None
    startDate: str
    endDate: Optional[str] = None
    gpa: Optional[float] = None
    description: Optional[str] = None


class SkillEntry(BaseModel):
    name: str
    category: Optional[str] = None
    proficiencyLevel: Optional[str] = None


class ProjectEntry(BaseModel):
    name: str
    description: Optional[str] = None
    technologies: list[str]
    url: Optional[str] = None
    githubUrl: Optional[str] = None


class CertificationEntry(BaseModel):
    name: str
    issuer: str
    issueDate: str
    expiryDate: Optional[str] = None


class LanguageEntry(BaseModel):
    name: str
    proficiency: Optional[str] = None


class GeneratedCVContent(BaseModel):
    sectionTitles: SectionTitles
    professionalSummary: str
    workExperience: list[WorkExperienceEntry]
    education: list[EducationEntry]
    skills: list[SkillEntry]
    projects: list[ProjectEntry]
    certifications: list[CertificationEntry]
    languages: list[LanguageEntry]


# ── Job analysis (best-effort, every field defaults to empty) ────────────────

class MatchAnalysis(BaseModel):
    matchPercentage: float = 0
    matchingSkills: list[str] = []
    missingSkills: list[str] = []
    strengths: list[str] = []
    gaps: list[str] = []


class JobAnalysis(BaseModel):
    technicalSkills: list[str] = []
    softSkills: list[str] = []
    experienceLevel: str = ""
    keywords: list[str] = []
    roleExpectations: list[str] = []
    matchAnalysis: Optional[MatchAnalysis] = None

    def is_empty(self) -> bool:
        return not (
            self.technicalSkills
            or self.softSkills
            or self.experienceLevel
            or self.keywords
            or self.roleExpectations
            or self.matchAnalysis
        )


# ── API ──────────────────────────────────────────────────────────────────────

class GenerateCVRequest(BaseModel):
    profileId: str
    jobPostingId: Optional[str] = None
    tone: Optional[str] = None
    templateName: Optional[str] = None
    includeProfilePicture: bool = False
    cvSpecificPhotoUrl: Optional[str] = None
    contentLanguage: Optional[str] = None


class RenderPdfRequest(BaseModel):
    templateName: Optional[str] = None


class RenderPdfResponse(BaseModel):
    url: str
    templateName: str


class UpdateSummaryRequest(BaseModel):
    professionalSummary: str = Field(min_length=1)


class GeneratedCVResponse(BaseModel):
    id: str
    userId: str
    profileId: str
    jobPostingId: Optional[str] = None
    generationStatus: str
    cvType: str
    tone: str
    templateName: str
    contentLanguage: str
    includeProfilePicture: bool
    cvSpecificPhotoUrl: Optional[str] = None
    generatedContent: Optional[GeneratedCVContent] = None
    professionalSummary: Optional[str] = None
    aiModelUsed: Optional[str] = None
    errorMessage: Optional[str] = None
    pdfUrl: Optional[str] = None
    jobTitle: Optional[str] = None
    company: Optional[str] = None
    createdAt: str
    updatedAt: str


class TemplateInfo(BaseModel):
    id: str
    name: str
    premium: bool

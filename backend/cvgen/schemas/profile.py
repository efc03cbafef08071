"""Profile and job posting schemas."""

from typing import Optional

from pydantic import BaseModel


class WorkExperienceIn(BaseModel):
    company: str
    position: str
    location: Optional[str] = None
    startDate: str
    endDate: Optional[str] = None
    description: Optional[str] = None
    achievements: list[str] = []


class EducationIn(BaseModel):
    institution: str
    degree: str
    fieldOfStudy: Optional[str] = None
    startDate: str
    endDate: Optional[str] = None
    gpa: Optional[float] = None
    description: Optional[str] = None


class SkillIn(BaseModel):
    name: str
    category: Optional[str] = None
    proficiencyLevel: Optional[str] = None


class ProjectIn(BaseModel):
    name: str
    description: Optional[str] = None
    technologies: list[str] = []
    url: Optional[str] = None
    githubUrl: Optional[str] = None


class CertificationIn(BaseModel):
    name: str
    issuer: str
    issueDate: str
    expiryDate: Optional[str] = None


class LanguageIn(BaseModel):
    name: str
    proficiency: Optional[str] = None


class ProfileUpsertRequest(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedinUrl: Optional[str] = None
    githubUrl: Optional[str] = None
    portfolioUrl: Optional[str] = None
    professionalSummary: Optional[str] = None
    profilePictureUrl: Optional[str] = None
    workExperience: list[WorkExperienceIn] = []
    education: list[EducationIn] = []
    skills: list[SkillIn] = []
    projects: list[ProjectIn] = []
    certifications: list[CertificationIn] = []
    languages: list[LanguageIn] = []


class ProfileResponse(ProfileUpsertRequest):
    id: str
    userId: str


class JobPostingCreateRequest(BaseModel):
    jobTitle: str
    company: Optional[str] = None
    jobUrl: Optional[str] = None
    jobDescription: str
    requiredSkills: list[str] = []
    experienceLevel: Optional[str] = None


class JobPostingUpdateRequest(BaseModel):
    jobTitle: Optional[str] = None
    company: Optional[str] = None
    jobUrl: Optional[str] = None
    jobDescription: Optional[str] = None
    requiredSkills: Optional[list[str]] = None
    experienceLevel: Optional[str] = None


class JobPostingResponse(BaseModel):
    id: str
    userId: str
    jobTitle: str
    company: Optional[str] = None
    jobUrl: Optional[str] = None
    jobDescription: str
    requiredSkills: list[str]
    keywords: list[str]
    experienceLevel: Optional[str] = None
    createdAt: str

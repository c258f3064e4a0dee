import json
from typing import Any

from app.ai.types import ChatMessage

PARSE_RESUME_SYSTEM = (
    "You are a professional resume parser. Extract structured information from resumes.\n\n"
    "Return a JSON object with these fields:\n"
    "- name: Full name\n"
    "- email: Email address\n"
    "- phone: Phone number\n"
    "- summary: Professional summary\n"
    "- skills: Array of skills (normalize to canonical forms, e.g., \"JS\" -> \"JavaScript\")\n"
    "- experience: Array of work experiences, each with {company, title, duration, bullets}\n"
    "- education: Array of education entries with {institution, degree, field, year}\n"
    "- projects: Array of projects with {name, description, technologies}\n\n"
    "Be precise and extract all available information. "
    "If something is missing, use an empty string or an empty list."
)

JOB_FIT_SYSTEM = (
    "You are an expert career advisor analyzing how well a candidate's resume matches a job posting.\n\n"
    "Analyze the resume against the job requirements and return a JSON object with:\n"
    "- matchScore: Integer 0-100 indicating overall fit\n"
    "- matchedSkills: Array of skills from resume that match job requirements\n"
    "- missingSkills: Array of important skills from job that candidate lacks\n"
    "- recommendations: Detailed text with specific improvement suggestions\n"
    "- atsScore: Integer 0-100 indicating ATS optimization (keyword matching, format, etc.)\n"
    "- keywordAlignment: Text explaining how well resume keywords align with job description\n\n"
    "Be thorough, specific, and actionable in your analysis."
)

IMPROVE_RESUME_SYSTEM = (
    "You are a professional resume writer specializing in ATS optimization and impactful content.\n\n"
    "Improve the resume to better match the target job. Return a JSON object with:\n"
    "- improvedSummary: Enhanced professional summary (3-4 sentences, compelling, keyword-rich)\n"
    "- improvedBullets: Array of objects with {originalExperience: string, improvedBullets: string[]}\n"
    "  - Use action verbs\n"
    "  - Quantify achievements where possible\n"
    "  - Incorporate relevant keywords from job description\n"
    "  - Follow STAR method (Situation, Task, Action, Result)\n"
    "- suggestedSkills: Array of skills to add based on job requirements\n"
    "- formattingTips: Array of specific formatting improvements\n\n"
    "Make improvements concrete, actionable, and ATS-friendly."
)


def _resume_json(parsed_resume: dict[str, Any]) -> str:
    return json.dumps(parsed_resume, indent=2, ensure_ascii=False)


def build_parse_messages(resume_text: str) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=PARSE_RESUME_SYSTEM),
        ChatMessage(role="user", content=f"Parse this resume:\n\n{resume_text}"),
    ]


def build_job_fit_messages(
    parsed_resume: dict[str, Any], job_title: str, job_description: str
) -> list[ChatMessage]:
    user = (
        f"Job Title: {job_title}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Candidate Resume:\n{_resume_json(parsed_resume)}\n\n"
        "Analyze the fit and provide detailed recommendations."
    )
    return [
        ChatMessage(role="system", content=JOB_FIT_SYSTEM),
        ChatMessage(role="user", content=user),
    ]


def build_improve_messages(
    parsed_resume: dict[str, Any], job_title: str, job_description: str
) -> list[ChatMessage]:
    user = (
        f"Target Job: {job_title}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Current Resume:\n{_resume_json(parsed_resume)}\n\n"
        "Provide specific improvements for this resume."
    )
    return [
        ChatMessage(role="system", content=IMPROVE_RESUME_SYSTEM),
        ChatMessage(role="user", content=user),
    ]

"""Prompt template for profile-to-job match analysis."""

from __future__ import annotations

from .schemas import Job, Profile

MATCH_SYSTEM_PROMPT = "You are an expert recruitment analyst. Respond ONLY with valid JSON."

MATCH_ANALYSIS_PROMPT = """Analyze how well this candidate profile matches the job posting.

CANDIDATE PROFILE:
- Name: {name}
- Experience: {experience_years} years
- Skills: {skills}
- Location Preference: {location_preference}
- Visa Status: {visa_status}
- Languages: {languages}
- Company Size Preference: {company_size_preference}
- Remote Preference: {remote_preference}
{min_salary_line}
JOB POSTING:
- Title: {title}
- Company: {company}
- Location: {location}
- Remote Type: {remote_type}
- Description: {description}
- Requirements: {requirements}
{nice_to_have_line}{salary_line}
Skills matching guidelines:
1) Match skills by meaning, not exact spelling ("ML" matches "Machine Learning").
2) matching_skills must use the candidate's own skill names.
3) missing_skills are job requirements the candidate does not cover. A skill can never appear in both lists.
4) Treat nice-to-have items as a bonus, never as missing requirements.

Provide a JSON response with EXACTLY this structure (no markdown, no explanation, ONLY valid JSON):
{{
    "overall_score": <0-100>,
    "skills_match": <0-100>,
    "experience_match": <0-100>,
    "location_match": <0-100>,
    "company_match": <0-100>,
    "requirements_match": <0-100>,
    "matching_skills": ["skill1", "skill2"],
    "missing_skills": ["skill3"],
    "recommendation": "strong_apply|apply|maybe|skip",
    "details": "Analysis of strengths, gaps and advice for the candidate."
}}

Scoring policy:
1) skills_match: share of required skills the candidate covers.
2) experience_match: years of experience against the seniority the role implies.
3) location_match: location and remote preference alignment (100 = same place or compatible remote setup).
4) company_match: fit with the candidate's company size preference.
5) requirements_match: overall coverage of the listed requirements.
6) overall_score is the weighted average: skills 40%, requirements 30%, experience 15%, location 10%, company 5%.

Recommendation must agree with overall_score:
- "strong_apply": overall_score >= 80
- "apply": overall_score 60-79
- "maybe": overall_score 40-59
- "skip": overall_score < 40
"""


def _format_list(values: list[str]) -> str:
    cleaned = [str(v).strip() for v in values if str(v).strip()]
    return ", ".join(cleaned) if cleaned else "none listed"


def _format_languages(profile: Profile) -> str:
    if not profile.languages:
        return "none listed"
    return ", ".join(f"{lang} ({level.value})" for lang, level in profile.languages.items())


def _format_amount(value: float) -> str:
    return f"{int(value)}" if float(value).is_integer() else f"{value:.2f}"


def _salary_line(job: Job) -> str:
    if job.salary_min is None and job.salary_max is None:
        return ""
    currency = job.salary_currency or "SEK"
    if job.salary_min is not None and job.salary_max is not None:
        return f"- Salary Range: {_format_amount(job.salary_min)} - {_format_amount(job.salary_max)} {currency}\n"
    if job.salary_min is not None:
        return f"- Salary Range: {_format_amount(job.salary_min)}+ {currency}\n"
    return f"- Salary Range: up to {_format_amount(job.salary_max)} {currency}\n"


def build_match_prompt(profile: Profile, job: Job) -> str:
    """Render the analysis prompt. Identical inputs always give identical text."""
    min_salary_line = (
        f"- Minimum Salary: {_format_amount(profile.min_salary)}\n" if profile.min_salary is not None else ""
    )
    nice_to_have_line = f"- Nice to Have: {_format_list(job.nice_to_have)}\n" if job.nice_to_have else ""
    return MATCH_ANALYSIS_PROMPT.format(
        name=profile.name,
        experience_years=profile.experience_years,
        skills=_format_list(profile.skills),
        location_preference=profile.location_preference or "not specified",
        visa_status=profile.visa_status.value,
        languages=_format_languages(profile),
        company_size_preference=profile.company_size_preference.value,
        remote_preference=profile.remote_preference.value,
        min_salary_line=min_salary_line,
        title=job.title,
        company=job.company or "not specified",
        location=job.location or "not specified",
        remote_type=job.remote_type.value,
        description=job.description or "not provided",
        requirements=_format_list(job.requirements),
        nice_to_have_line=nice_to_have_line,
        salary_line=_salary_line(job),
    )

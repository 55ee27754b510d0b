"""
Prompt templates for the four AI operations.

Each prompt asks for a single JSON object and shows its exact shape; the
reply is parsed by extract_json_object(). Free-text fields (feedback,
diagnosis, plans) are requested in settings.feedback_language. Skill names
are given in English and Arabic so the model can match either.
"""

import json
from typing import Dict, Iterable, List, Sequence, Tuple

from skills_platform.config import settings

GRADING_PROMPT = """You are an expert teacher assessing 21st-century skills.
Grade the following student answer.

Task: {title}
Description: {description}
Questions:
{questions}

Student answer:
{content}

Score each of these skills from 0 to 100:
{skills}

Reply with JSON only, in exactly this shape:
{{
{score_lines}
  "overall_score": 80,
  "feedback": "Detailed feedback written in {language}"
}}
"""

RECOMMENDATIONS_PROMPT = """You are an educational advisor. A student scored low on these skills:
{weak_skills}

Write a development plan in {language}. Reply with JSON only, in exactly this shape:
{{
  "diagnosis": "Why the student is struggling",
  "activities": ["Activity 1", "Activity 2", "Activity 3"],
  "resources": [
    {{"title": "Resource name", "type": "course", "url": "https://", "duration": "3 hours"}}
  ],
  "week_plan": ["Day 1: ...", "Day 2: ..."],
  "month_plan": ["Week 1: ...", "Week 2: ..."]
}}
"""

ANALYSIS_PROMPT = """You are an education expert specializing in 21st-century skills.
Analyze this student's performance.

Completed assessments: {assessment_count}
Weak skills: {weak_skills}
Average score per skill: {skill_scores}

Provide, in {language}: an overall analysis, precise strengths and weaknesses,
the likely reason behind each weak skill, and practical suggestions.
Reply with JSON only, in exactly this shape:
{{
  "overallAnalysis": "General analysis",
  "strengths": ["Strength 1", "Strength 2"],
  "weaknesses": [
    {{"skill": "Skill name", "reason": "Why it is weak", "suggestions": ["Suggestion 1"]}}
  ],
  "futureProjection": "Expected future performance"
}}
"""

EVALUATION_PROMPT = """You are an expert in the JCSEE standards for evaluating assessment tools.
Evaluate the following task.

Task description:
{description}

Questions:
{questions}

Student answer:
{content}

Rate the task from 0 to 100 on each JCSEE standard:
1. Utility: is the task useful for measuring the skills?
2. Feasibility: can the task realistically be carried out?
3. Propriety: is the task fair and appropriate?
4. Accuracy: does the task measure accurately?

Write feedback and improvements in {language}. Reply with JSON only, in exactly this shape:
{{
  "scores": {{"utility": 85, "feasibility": 90, "propriety": 80, "accuracy": 88}},
  "overallQuality": 86,
  "feedback": "General notes",
  "improvements": ["Improvement 1", "Improvement 2"]
}}
"""


def skill_key(name_en: str) -> str:
    """'Critical Thinking' -> 'critical_thinking'. Keys of the grading reply."""
    return "_".join(name_en.lower().split())


def _bullets(lines: Iterable[str]) -> str:
    text = "\n".join(f"- {line}" for line in lines)
    return text or "- (none)"


def grading_prompt(
    title: str,
    description: str,
    questions: Sequence[str],
    content: str,
    skills: Sequence[Tuple[str, str]],
) -> str:
    """skills: (name_en, name_ar) pairs, in the order they should be scored."""
    return GRADING_PROMPT.format(
        title=title,
        description=description,
        questions=_bullets(questions),
        content=content,
        skills=_bullets(f"{en} ({ar})" for en, ar in skills),
        score_lines="\n".join(f'  "{skill_key(en)}": 75,' for en, _ in skills),
        language=settings.feedback_language,
    )


def recommendations_prompt(weak_skills: Sequence[Tuple[str, str, float]]) -> str:
    """weak_skills: (name_en, name_ar, score) triples."""
    return RECOMMENDATIONS_PROMPT.format(
        weak_skills=_bullets(f"{en} ({ar}): {score:g}/100" for en, ar, score in weak_skills),
        language=settings.feedback_language,
    )


def analysis_prompt(
    assessment_count: int,
    skill_scores: Dict[str, float],
    weak_skills: List[str],
) -> str:
    return ANALYSIS_PROMPT.format(
        assessment_count=assessment_count,
        weak_skills=", ".join(weak_skills) or "none",
        skill_scores=json.dumps(skill_scores, ensure_ascii=False),
        language=settings.feedback_language,
    )


def evaluation_prompt(description: str, questions: Sequence[str], content: str) -> str:
    return EVALUATION_PROMPT.format(
        description=description,
        questions=_bullets(questions),
        content=content or "(no student answer provided)",
        language=settings.feedback_language,
    )

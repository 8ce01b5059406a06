"""
Prompt templates for the external model.
"""

ANALYSIS_PROMPT_TEMPLATE = """Analyze the following resume and job description. Return a JSON object with:
1. matched_keywords: Array of important technical or role-specific terms present in both
2. missing_keywords: Array of relevant terms from the job description not found in the resume
3. recommendations: Array of objects, each with:
   - explanation: a short, impactful recommendation to improve the resume based on the missing keywords
   - snippet: an example line the candidate could add to their resume

Resume:
{resume}

Job Description:
{job_description}

Return ONLY the JSON object, no other text.

{{"matched_keywords": [], "missing_keywords": [], "recommendations": [{{"explanation": "", "snippet": ""}}]}}"""


ROADMAP_PROMPT_TEMPLATE = """A candidate needs to learn the following skills to match a job description:
{skills}

Build a learning plan. Return a JSON object with:
1. skillsToLearn: Array of skill names, most important first
2. certifiedCourses: Array of at most {max_courses} paid or certified courses, each with
   title, provider, url, duration, level, price
3. freeResources: Array of at most {max_free} free resources (prefer YouTube videos), each with
   title, creator, platform, url, duration

Only include resources that really exist. Use full https URLs.
Return ONLY the JSON object, no other text."""


REPLACEMENT_PROMPT_TEMPLATE = """This free learning resource is no longer available:
{resource}

Suggest ONE different free resource that teaches the same topic ({topic}).
Prefer a YouTube video that really exists. Do not repeat any of these URLs:
{excluded}

Return ONLY a JSON object with title, creator, platform, url, duration."""


def build_analysis_prompt(resume: str, job_description: str) -> str:
    return ANALYSIS_PROMPT_TEMPLATE.format(resume=resume, job_description=job_description)


def build_roadmap_prompt(skills, max_courses: int, max_free: int) -> str:
    listed = "\n".join(f"- {s}" for s in skills)
    return ROADMAP_PROMPT_TEMPLATE.format(skills=listed, max_courses=max_courses, max_free=max_free)


def build_replacement_prompt(resource: dict, topic: str, excluded) -> str:
    return REPLACEMENT_PROMPT_TEMPLATE.format(
        resource=resource,
        topic=topic,
        excluded="\n".join(f"- {u}" for u in excluded) or "- (none)",
    )

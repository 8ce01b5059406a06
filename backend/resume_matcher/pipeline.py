"""
Analysis Pipeline
==================
Resume/JD keyword analysis and learning-resource curation.

Each operation makes exactly one model call and decodes the reply with the
strict decoders; an undecodable reply raises MalformedResponseError and no
partial result is returned. Results are not cached: identical inputs call
the model again and may get different keywords back.
"""

import logging
from typing import List, Optional

from .config import MAX_CERTIFIED_COURSES, MAX_FREE_RESOURCES, Settings
from .decoder import decode_analysis, decode_learning_resources
from .errors import MalformedResponseError, ValidationError
from .models import AnalysisResult, LearningResources
from .prompts import build_analysis_prompt, build_roadmap_prompt
from .resources import LinkValidator

logger = logging.getLogger(__name__)


class AnalysisPipeline:

    def __init__(self, llm, settings: Settings, link_validator: Optional[LinkValidator] = None):
        self.llm = llm
        self.settings = settings
        self.link_validator = link_validator

    async def analyze(self, resume_text: Optional[str], job_description_text: Optional[str]) -> AnalysisResult:
        if not resume_text or not resume_text.strip():
            raise ValidationError("Resume text is required")
        if not job_description_text or not job_description_text.strip():
            raise ValidationError("Job description text is required")

        prompt = build_analysis_prompt(resume_text.strip(), job_description_text.strip())
        reply = await self.llm.complete(prompt)
        decoded = decode_analysis(reply)
        if not decoded.ok:
            logger.warning(f"Malformed analysis reply: {decoded.reason}")
            raise MalformedResponseError()

        result = decoded.value
        logger.info(
            f"Analysis: {len(result.matched_keywords)} matched, "
            f"{len(result.missing_keywords)} missing, "
            f"{len(result.recommendations)} recommendations"
        )
        return result

    async def curate_learning_resources(self, missing_skills: List[str]) -> LearningResources:
        skills = [s.strip() for s in missing_skills or [] if s and s.strip()]
        if not skills:
            return LearningResources()

        prompt = build_roadmap_prompt(skills, MAX_CERTIFIED_COURSES, MAX_FREE_RESOURCES)
        reply = await self.llm.complete(prompt)
        decoded = decode_learning_resources(reply)
        if not decoded.ok:
            logger.warning(f"Malformed roadmap reply: {decoded.reason}")
            raise MalformedResponseError("Failed to generate roadmap")

        resources = decoded.value
        if self.link_validator is not None and self.settings.validate_video_links:
            resources = await self.link_validator.filter_resources(resources, topic=", ".join(skills))
        return resources

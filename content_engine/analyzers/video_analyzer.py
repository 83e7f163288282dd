"""
Video analyzer: blog copy, SEO metadata and the full product list for a video.

The model sees the products already parsed from the description and may add
products mentioned only in the title, text or tags. Description products the
model leaves out are merged back, so the analysis never loses a parsed link.
"""

import time
from typing import Any, Optional

from pydantic import ValidationError

from content_engine.analyzers.prompts import (
    VIDEO_ANALYST_SYSTEM,
    format_video_analysis_prompt,
)
from content_engine.models.schemas import (
    ExtractedProduct,
    ProductSource,
    VideoAnalysis,
    VideoInput,
)
from content_engine.services.llm_service import ClaudeService, ClaudeServiceError
from content_engine.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_CATEGORY = "lifestyle"


def merge_description_products(
    llm_products: list[ExtractedProduct],
    description_products: list[ExtractedProduct],
) -> list[ExtractedProduct]:
    """LLM products followed by description products whose name the LLM did not list."""
    known = {p.name.lower() for p in llm_products}
    merged = list(llm_products)
    for product in description_products:
        if product.name.lower() not in known:
            known.add(product.name.lower())
            merged.append(product)
    return merged


def build_fallback_analysis(
    video: VideoInput,
    description_products: list[ExtractedProduct],
) -> VideoAnalysis:
    """Title-only analysis used when the model is unavailable or fails."""
    title = video.title or video.video_id
    return VideoAnalysis(
        category=FALLBACK_CATEGORY,
        products=list(description_products),
        blog_title=title,
        blog_excerpt=title,
        blog_content=f"Check out this video: {title}",
        seo_title=title[:60],
        seo_description=title[:160],
        suggested_tags=[],
        generated_by="fallback",
    )


class VideoAnalyzer:
    """
    Generates a VideoAnalysis for one video with Claude.

    Example:
        >>> analyzer = VideoAnalyzer(llm_service)
        >>> analysis = await analyzer.analyze(video, description_products)
        >>> analysis.blog_title
    """

    def __init__(self, llm_service: Optional[ClaudeService]):
        self.llm_service = llm_service

    async def analyze(
        self,
        video: VideoInput,
        description_products: Optional[list[ExtractedProduct]] = None,
    ) -> VideoAnalysis:
        """
        Analyze a video. Never raises; failures produce a fallback analysis.

        Args:
            video: Video title, description and tags
            description_products: Products already parsed from the description

        Returns:
            VideoAnalysis with ``generated_by`` set to "llm" or "fallback"
        """
        description_products = list(description_products or [])
        if self.llm_service is None:
            return build_fallback_analysis(video, description_products)

        start_time = time.time()
        prompt = format_video_analysis_prompt(
            title=video.title,
            description=video.description,
            tags=video.tags,
            products=description_products,
        )

        try:
            data = await self.llm_service.complete_json(prompt, system=VIDEO_ANALYST_SYSTEM)
            analysis = self._parse_analysis(data)
        except (ClaudeServiceError, ValidationError) as e:
            logger.warning(
                "Video analysis failed, using fallback",
                video_id=video.video_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return build_fallback_analysis(video, description_products)

        llm_count = len(analysis.products)
        products = merge_description_products(analysis.products, description_products)
        analysis = analysis.model_copy(update={"products": products})

        logger.info(
            "Video analysis completed",
            video_id=video.video_id,
            category=analysis.category,
            llm_products=llm_count,
            total_products=len(products),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return analysis

    def _parse_analysis(self, data: dict[str, Any]) -> VideoAnalysis:
        products = []
        for raw in data.get("products") or []:
            if isinstance(raw, dict) and isinstance(raw.get("name"), str):
                products.append({**raw, "source": ProductSource.LLM})
        return VideoAnalysis.model_validate(
            {**data, "products": products, "generated_by": "llm"}
        )

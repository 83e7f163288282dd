"""
Analyzers module for the creator content engine.

Components:
    - VideoAnalyzer: Claude-generated blog/SEO copy and product list per video
    - prompts: system and user prompts for video analysis
"""

from content_engine.analyzers.prompts import (
    VIDEO_ANALYST_SYSTEM,
    format_video_analysis_prompt,
)
from content_engine.analyzers.video_analyzer import (
    VideoAnalyzer,
    build_fallback_analysis,
    merge_description_products,
)

__all__ = [
    "VIDEO_ANALYST_SYSTEM",
    "format_video_analysis_prompt",
    "VideoAnalyzer",
    "build_fallback_analysis",
    "merge_description_products",
]

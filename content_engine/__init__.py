"""
Creator Content Engine.

Turns creator video descriptions into shoppable product lists: brand-aware
parsing, affiliate/retail link classification and retail catalog enrichment,
orchestrated with LangGraph and optionally analyzed with Claude.
"""

__version__ = "1.0.0"
__author__ = "Creator Content Engine Team"

# Lazy imports to avoid circular dependencies
def get_pipeline():
    """Get the VideoContentPipeline class (lazy import)."""
    from content_engine.pipeline.orchestrator import VideoContentPipeline
    return VideoContentPipeline

__all__ = ["get_pipeline", "__version__"]

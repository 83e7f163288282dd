"""Pipeline module for the creator content engine."""

from content_engine.pipeline.orchestrator import VideoContentPipeline, create_pipeline
from content_engine.pipeline.reconciler import ReconciliationEngine, deduplicate_products

__all__ = [
    "VideoContentPipeline",
    "create_pipeline",
    "ReconciliationEngine",
    "deduplicate_products",
]

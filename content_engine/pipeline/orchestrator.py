"""
Per-video pipeline orchestrator using LangGraph.

Graph structure:
    load_brands -> extract_products --+--> analyze_video --+--> reconcile_products -> END
                                      |                    |
                                      +--------------------+
                                        (analysis disabled)

A failing node records its error and the run continues, so every run ends
with a (possibly empty) product list.
"""

import operator
import time
from functools import wraps
from typing import Annotated, Any, Callable, Literal, Optional, TypedDict, Union

from langgraph.graph import END, StateGraph

from content_engine.analyzers.video_analyzer import VideoAnalyzer
from content_engine.config.settings import Settings, get_settings
from content_engine.extractors.description_extractor import DescriptionExtractor
from content_engine.extractors.link_classifier import LinkClassifier
from content_engine.extractors.product_parser import ProductParser
from content_engine.models.schemas import (
    ExtractedProduct,
    VideoAnalysis,
    VideoInput,
    VideoProcessingResult,
)
from content_engine.pipeline.reconciler import ReconciliationEngine
from content_engine.services.brand_directory import BrandDirectory
from content_engine.services.llm_service import ClaudeService
from content_engine.services.retail_catalog import RetailCatalogClient
from content_engine.utils.logger import LogContext, get_logger
from content_engine.utils.retry import ErrorHandler

logger = get_logger(__name__)


# =============================================================================
# Pipeline State Definition (TypedDict for LangGraph)
# =============================================================================

class VideoStateDict(TypedDict, total=False):
    """
    TypedDict-based pipeline state for LangGraph.

    Models are stored serialized; errors accumulate across nodes.
    """
    video: dict  # Serialized VideoInput

    brand_source: str
    brand_count: int

    description_products: list[dict]
    extraction_strategy: str
    analysis: Optional[dict]  # Serialized VideoAnalysis
    final_products: list[dict]

    errors: Annotated[list[str], operator.add]
    step_timings: dict  # Node name -> duration_ms


def track_timing(func: Callable):
    """Record node duration; a raised exception becomes an entry in ``errors``."""
    @wraps(func)
    async def wrapper(self, state: VideoStateDict) -> dict[str, Any]:
        start_time = time.time()
        node_name = func.__name__.strip("_").replace("_node", "")

        logger.debug(f"Starting node: {node_name}")

        try:
            result = await func(self, state)
        except Exception as e:
            logger.error(
                f"Node failed: {node_name}",
                error=str(e),
                error_type=ErrorHandler.categorize_error(e),
            )
            result = {"errors": [f"{node_name}: {e}"]}

        duration_ms = int((time.time() - start_time) * 1000)
        step_timings = dict(state.get("step_timings") or {})
        step_timings[node_name] = duration_ms
        result["step_timings"] = step_timings

        logger.debug(f"Completed node: {node_name}", duration_ms=duration_ms)
        return result

    return wrapper


def _products_from_state(items: Optional[list[dict]]) -> list[ExtractedProduct]:
    return [ExtractedProduct.model_validate(item) for item in items or []]


# =============================================================================
# Pipeline
# =============================================================================

class VideoContentPipeline:
    """
    LangGraph-based pipeline turning one video into its product list.

    The brand directory, retail client and LLM service are long-lived and
    shared across runs; build them once with ``create_pipeline``.

    Example:
        >>> async with create_pipeline(settings) as pipeline:
        ...     result = await pipeline.run(video)
        ...     print(len(result.products))
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        brand_directory: Optional[BrandDirectory] = None,
        retail_client: Optional[RetailCatalogClient] = None,
        llm_service: Optional[ClaudeService] = None,
        analyze: bool = True,
        enrich: bool = True,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Application settings (uses defaults if not provided)
            brand_directory: Shared brand directory
            retail_client: Shared retail catalog client
            llm_service: Claude service; analysis is skipped without one
            analyze: Run the analysis node when an LLM service is available
            enrich: Enrich products from the retail catalog
        """
        self.settings = settings or get_settings()
        self.brand_directory = brand_directory or BrandDirectory.from_settings(self.settings)
        self.retail_client = retail_client
        self.llm_service = llm_service
        self.analyze_enabled = analyze
        self.enrich_enabled = enrich

        self.classifier = LinkClassifier()
        self.analyzer = VideoAnalyzer(llm_service) if (analyze and llm_service) else None
        self.reconciler = ReconciliationEngine(
            retail_client=retail_client if enrich else None,
            partner_tag=self.settings.amazon_partner_tag,
            category_hint=self.settings.retail_search_index,
            max_enriched=self.settings.max_enriched_products,
        )

        self._graph = self._build_graph()

    async def __aenter__(self) -> "VideoContentPipeline":
        if self.retail_client is not None:
            await self.retail_client.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _build_graph(self):
        graph = StateGraph(VideoStateDict)

        graph.add_node("load_brands", self._load_brands_node)
        graph.add_node("extract_products", self._extract_products_node)
        graph.add_node("analyze_video", self._analyze_video_node)
        graph.add_node("reconcile_products", self._reconcile_products_node)

        graph.set_entry_point("load_brands")
        graph.add_edge("load_brands", "extract_products")
        graph.add_conditional_edges(
            "extract_products",
            self._route_after_extraction,
            {
                "analyze": "analyze_video",
                "reconcile": "reconcile_products",
            },
        )
        graph.add_edge("analyze_video", "reconcile_products")
        graph.add_edge("reconcile_products", END)

        return graph.compile()

    def _route_after_extraction(self, state: VideoStateDict) -> Literal["analyze", "reconcile"]:
        return "analyze" if self.analyzer is not None else "reconcile"

    # =========================================================================
    # Node Implementations
    # =========================================================================

    @track_timing
    async def _load_brands_node(self, state: VideoStateDict) -> dict[str, Any]:
        snapshot = await self.brand_directory.get_snapshot()
        return {"brand_source": snapshot.source, "brand_count": len(snapshot.names)}

    @track_timing
    async def _extract_products_node(self, state: VideoStateDict) -> dict[str, Any]:
        video = VideoInput.model_validate(state["video"])
        snapshot = await self.brand_directory.get_snapshot()
        parser = ProductParser(snapshot, default_type=self.settings.default_product_type)
        outcome = DescriptionExtractor(parser, self.classifier).extract(video.description)
        return {
            "description_products": [p.to_dict() for p in outcome.products],
            "extraction_strategy": outcome.strategy,
        }

    @track_timing
    async def _analyze_video_node(self, state: VideoStateDict) -> dict[str, Any]:
        video = VideoInput.model_validate(state["video"])
        description_products = _products_from_state(state.get("description_products"))
        analysis = await self.analyzer.analyze(video, description_products)
        return {"analysis": analysis.to_dict()}

    @track_timing
    async def _reconcile_products_node(self, state: VideoStateDict) -> dict[str, Any]:
        description_products = _products_from_state(state.get("description_products"))
        candidates = list(description_products)

        analysis = state.get("analysis")
        if analysis:
            known = {p.name.lower() for p in description_products}
            for product in _products_from_state(analysis.get("products")):
                if product.name.lower() in known:
                    continue
                candidates.append(self.classifier.tag(product))

        final = await self.reconciler.reconcile(candidates)
        return {"final_products": [p.to_dict() for p in final]}

    # =========================================================================
    # Execution
    # =========================================================================

    async def run(self, video: Union[VideoInput, dict]) -> VideoProcessingResult:
        """
        Execute the pipeline for one video.

        Args:
            video: VideoInput or a mapping accepted by it

        Returns:
            VideoProcessingResult; node failures are listed in ``errors``
        """
        if not isinstance(video, VideoInput):
            video = VideoInput.model_validate(video)

        initial_state: VideoStateDict = {
            "video": video.to_dict(),
            "description_products": [],
            "extraction_strategy": "none",
            "analysis": None,
            "final_products": [],
            "errors": [],
            "step_timings": {},
        }

        with LogContext(video_id=video.video_id):
            logger.info("Starting video pipeline", title=video.title, platform=video.platform)
            final_state = await self._graph.ainvoke(initial_state)

            analysis = final_state.get("analysis")
            result = VideoProcessingResult(
                video_id=video.video_id,
                title=video.title,
                products=_products_from_state(final_state.get("final_products")),
                analysis=VideoAnalysis.model_validate(analysis) if analysis else None,
                extraction_strategy=final_state.get("extraction_strategy") or "none",
                errors=list(final_state.get("errors") or []),
                step_timings=dict(final_state.get("step_timings") or {}),
            )

            logger.info(
                "Video pipeline completed",
                products=len(result.products),
                affiliate_links=result.affiliate_link_count,
                retail_links=result.retail_link_count,
                errors=len(result.errors),
                duration_ms=sum(result.step_timings.values()),
            )
        return result

    # =========================================================================
    # Cleanup
    # =========================================================================

    async def close(self) -> None:
        """Close all service connections."""
        try:
            if self.retail_client is not None:
                await self.retail_client.close()
            if self.llm_service is not None:
                await self.llm_service.close()
            await self.brand_directory.close()
        except Exception as e:
            logger.warning(f"Error closing services: {e}")


# =============================================================================
# Convenience Functions
# =============================================================================

def create_pipeline(
    settings: Optional[Settings] = None,
    analyze: bool = True,
    enrich: bool = True,
) -> VideoContentPipeline:
    """
    Build the shared services and a pipeline using them.

    Call once at startup and reuse the pipeline for every video; the brand
    cache, retail cache and rate gate live inside the services it holds.
    """
    settings = settings or get_settings()

    llm_service = None
    if analyze and settings.is_analysis_configured():
        llm_service = ClaudeService(settings)

    return VideoContentPipeline(
        settings=settings,
        brand_directory=BrandDirectory.from_settings(settings),
        retail_client=RetailCatalogClient(settings) if enrich else None,
        llm_service=llm_service,
        analyze=analyze,
        enrich=enrich,
    )

"""Cache-fronted entry points used by the CLI."""
import logging
from typing import Optional

from pipeline.orchestrator import PipelineResult, PredictionPipeline
from storage.cache import ResultCache, make_key

logger = logging.getLogger(__name__)


class PredictionService:
    """
    Serves pipeline results from the ResultCache when fresh, otherwise runs
    the pipeline and stores the result. Failed runs are never cached.

    Two callers missing the same key at once both run the pipeline; the
    later write replaces the earlier one. Misses are not coalesced.
    """

    def __init__(self, pipeline: PredictionPipeline, cache: Optional[ResultCache] = None):
        self.pipeline = pipeline
        self.cache = cache or ResultCache()

    async def get_best_pick(self, sport: str, date_filter: Optional[str] = None) -> PipelineResult:
        key = make_key("best", sport, date_filter)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.pipeline.select_best_pick(sport, date_filter)
        self.cache.put(key, result)
        return result

    async def get_all_predictions(self, sport: str, date_filter: Optional[str] = None) -> PipelineResult:
        key = make_key("all", sport, date_filter)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = await self.pipeline.analyze_all(sport, date_filter)
        self.cache.put(key, result)
        logger.info(f"Cached {len(result.predictions)} {sport} predictions under {key}")
        return result

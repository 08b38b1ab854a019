"""
Apex Odds Pipeline
Main application entry point
"""
import asyncio
import argparse
import logging
import time
from pathlib import Path

# Core imports
from core.budget import RequestBudget
from core.errors import FixtureAnalysisError, NoHighValueFixtures, PipelineError
from core.http_client import HttpClient
from config.settings import (
    HTTP_TIMEOUT, HTTP_CONCURRENCY, HTTP_RETRIES, ODDS_API_MONTHLY_LIMIT,
    OUTPUT_DIR, LOGS_DIR, DEFAULT_SPORT, SAMPLE_ODDS_FILE, TEAM_STATS_FILE,
)
from config.sports import supported_sports

# Sources
from sources.base import FallbackOddsSource
from sources.odds_api import TheOddsApiSource
from sources.signals import FormSignalAggregator
from sources.sportsdb import TheSportsDbClient
from sources.static import StaticOddsSource, StaticTeamStatsSource

# Pipeline
from pipeline.orchestrator import PredictionPipeline
from pipeline.service import PredictionService

# Storage
from storage.output_manager import OutputManager

# Utils
from utils.datetime_utils import validate_date_filter
from utils.logging_config import setup_logging, log_performance_metric

logger = logging.getLogger(__name__)


def build_service(http: HttpClient, budget: RequestBudget, sample_only: bool = False) -> PredictionService:
    """Wire sources into a pipeline behind the result cache."""
    static_odds = StaticOddsSource(path=SAMPLE_ODDS_FILE or None)
    if sample_only:
        odds_source = static_odds
    else:
        odds_source = FallbackOddsSource([TheOddsApiSource(http, budget), static_odds])

    pipeline = PredictionPipeline(
        odds_source=odds_source,
        signal_source=FormSignalAggregator(TheSportsDbClient(http)),
        stats_source=StaticTeamStatsSource(path=TEAM_STATS_FILE or None),
    )
    return PredictionService(pipeline)


async def main(args):
    """Main application logic."""
    # Setup
    session_timestamp = setup_logging("apex")
    output_manager = OutputManager()

    Path(OUTPUT_DIR).mkdir(exist_ok=True)
    Path(LOGS_DIR).mkdir(exist_ok=True)

    logger.info("=" * 100)
    logger.info("APEX ODDS PIPELINE")
    logger.info("=" * 100)
    logger.info(f"Sport: {args.sport} | Mode: {args.mode} | Date filter: {args.date or 'none'}")
    if args.sample:
        logger.info("Using sample odds only")

    start_time = time.time()
    budget = RequestBudget("the_odds_api", ODDS_API_MONTHLY_LIMIT)

    async with HttpClient(timeout=HTTP_TIMEOUT, concurrency=HTTP_CONCURRENCY, retries=HTTP_RETRIES) as http:
        service = build_service(http, budget, sample_only=args.sample)
        try:
            if args.mode == "best":
                result = await service.get_best_pick(args.sport, args.date)
            else:
                result = await service.get_all_predictions(args.sport, args.date)
        except NoHighValueFixtures as e:
            logger.warning(f"\n⚠️  {e}")
            return 1
        except (FixtureAnalysisError, PipelineError) as e:
            logger.error(f"\n❌ Pipeline failed: {e}")
            return 1

    pipeline_duration = time.time() - start_time
    log_performance_metric("pipeline_time", pipeline_duration, "seconds")
    log_performance_metric("odds_api_requests", budget.used, "requests")

    telemetry = result.telemetry
    logger.info("\n" + "=" * 100)
    logger.info("RUN SUMMARY")
    logger.info("=" * 100)
    logger.info(f"Sources:     {', '.join(telemetry.sources) or 'none'}")
    logger.info(f"Scanned:     {telemetry.fixtures_scanned} fixtures")
    logger.info(f"Shortlisted: {telemetry.fixtures_shortlisted}")
    logger.info(f"Analyzed:    {telemetry.fixtures_analyzed} ({telemetry.fixtures_failed} failed)")
    for name, available in telemetry.collaborators.items():
        logger.info(f"{name}: {'available' if available else 'unavailable'}")

    if not result.predictions:
        logger.info(f"\nNo {args.sport} fixture cleared the shortlist threshold")
        return 0

    # Save results
    json_path = output_manager.save_predictions_json(result)
    csv_path = output_manager.save_markets_csv(result.predictions)
    output_manager.print_summary(result.predictions, top_n=args.top_n)

    total_duration = time.time() - start_time
    log_performance_metric("total_runtime", total_duration, "seconds")

    logger.info("\n" + "=" * 100)
    logger.info("📁 Output saved to:")
    logger.info(f"   {json_path.absolute()}")
    logger.info(f"   {csv_path.absolute()}")
    logger.info(f"\n📊 Logs saved to:")
    logger.info(f"   {Path(LOGS_DIR).absolute()}/")
    logger.info(f"   - apex_{session_timestamp}.log (main log)")
    logger.info(f"   - market_edges_{session_timestamp}.log (market edges)")
    logger.info(f"   - performance_{session_timestamp}.log (performance metrics)")
    logger.info("=" * 100)
    logger.info(f"\n⏱️  Total runtime: {total_duration:.1f} seconds")
    return 0


def _date_filter(value: str) -> str:
    try:
        return validate_date_filter(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Apex Odds Pipeline")

    parser.add_argument(
        "--sport",
        choices=supported_sports(),
        default=DEFAULT_SPORT,
        help=f"Sport to analyze (default: {DEFAULT_SPORT})"
    )

    parser.add_argument(
        "--mode",
        choices=["best", "all"],
        default="best",
        help="best = single highest-EV pick, all = every shortlisted fixture (default: best)"
    )

    parser.add_argument(
        "--date",
        type=_date_filter,
        default=None,
        help="today, tomorrow, upcoming, past or YYYY-MM-DD (default: no filter)"
    )

    parser.add_argument(
        "--top-n",
        type=int,
        default=10,
        help="Number of predictions to display (default: 10)"
    )

    parser.add_argument(
        "--sample",
        action="store_true",
        help="Skip live odds and use the sample slate"
    )

    return parser.parse_args(argv)


def cli():
    args = parse_arguments()
    raise SystemExit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()

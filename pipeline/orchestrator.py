"""
Pipeline orchestrator.

One run moves through Scanning -> DeepDiving -> BuildingNarrative ->
Selecting -> Done, or ends in Failed. Collaborator calls for a fixture are
fanned out concurrently and each carries its own timeout; per-fixture
results are merged only after every branch has finished.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from analysis.factors import FactorSynthesizer
from analysis.risk import RiskAssessor
from analysis.value_analyzer import ConfidenceScorer, ValueAnalyzer
from config.leagues import lookup_league
from config.settings import (
    BEST_PICK_CANDIDATES, COLLABORATOR_TIMEOUT, DEFAULT_REFERENCE_ODDS,
    INITIAL_PROBABILITY_ESTIMATE, SHORTLIST_EDGE_THRESHOLD,
)
from config.sports import SportProfile, get_sport_profile
from core.errors import (
    CollaboratorUnavailable, FixtureAnalysisError, NoHighValueFixtures, PipelineError, PredictionError,
)
from core.models import (
    ContingencyPick, FactorObservation, LeagueMetadata, MarketQuote, OddsQuote, Prediction,
    ProbabilityEstimate, TeamStats,
)
from markets.generator import MarketGenerator
from markets.pricing import MarketContext
from pipeline.narrative import NarrativeBuilder
from sources.base import OddsSource, SignalSource, TeamStatsSource
from utils.datetime_utils import matches_date_filter, validate_date_filter
from utils.logging_config import log_performance_metric

logger = logging.getLogger(__name__)

STRICT_REFEREE_TAG = "strict_referee"
CONTINGENCY_STAKE_FACTOR = 0.75
CONTINGENCY_ODDS_DRIFT = 0.15


class PipelineState(Enum):
    SCANNING = "scanning"
    DEEP_DIVING = "deep_diving"
    BUILDING_NARRATIVE = "building_narrative"
    SELECTING = "selecting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineTelemetry:
    sport: str
    date_filter: Optional[str] = None
    sources: List[str] = field(default_factory=list)
    fixtures_scanned: int = 0
    fixtures_shortlisted: int = 0
    fixtures_analyzed: int = 0
    fixtures_failed: int = 0
    collaborators: Dict[str, bool] = field(default_factory=dict)
    duration_seconds: float = 0.0
    state: str = PipelineState.SCANNING.value

    def to_dict(self):
        return {
            "sport": self.sport,
            "date_filter": self.date_filter,
            "sources": list(self.sources),
            "fixtures_scanned": self.fixtures_scanned,
            "fixtures_shortlisted": self.fixtures_shortlisted,
            "fixtures_analyzed": self.fixtures_analyzed,
            "fixtures_failed": self.fixtures_failed,
            "collaborators": dict(self.collaborators),
            "duration_seconds": round(self.duration_seconds, 3),
            "state": self.state,
        }


@dataclass(frozen=True)
class ShortlistEntry:
    quote: OddsQuote
    initial_edge: float


@dataclass
class FixtureAnalysis:
    """Everything the deep-dive learned about one fixture."""
    quote: OddsQuote
    profile: SportProfile
    league_info: LeagueMetadata
    observations: List[FactorObservation]
    estimate: ProbabilityEstimate
    markets: List[MarketQuote]
    primary: MarketQuote
    expected_value: float
    confidence: float  # 0-10
    home_stats: Optional[TeamStats] = None
    away_stats: Optional[TeamStats] = None
    collaborators: Dict[str, bool] = field(default_factory=dict)

    @property
    def fixture(self):
        return self.quote.fixture

    @property
    def data_sources(self) -> List[str]:
        sources = list(self.quote.sources)
        for label in [o.source for o in self.observations] + [s for m in self.markets for s in m.data_sources]:
            if label and label not in sources:
                sources.append(label)
        return sources


@dataclass
class PipelineResult:
    predictions: List[Prediction]
    telemetry: PipelineTelemetry

    @property
    def best(self) -> Optional[Prediction]:
        return self.predictions[0] if self.predictions else None

    def to_dict(self):
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "telemetry": self.telemetry.to_dict(),
        }


class PipelineRun:
    """State and counters for a single invocation; never shared between runs."""

    def __init__(self, sport: str, date_filter: Optional[str]):
        self.state = PipelineState.SCANNING
        self.history = [PipelineState.SCANNING]
        self.telemetry = PipelineTelemetry(sport=sport, date_filter=date_filter)
        self.started = time.time()

    def transition(self, state: PipelineState):
        if self.state in (PipelineState.DONE, PipelineState.FAILED):
            raise RuntimeError(f"Run already finished in state {self.state.value}")
        logger.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
        self.telemetry.state = state.value

    def merge_collaborators(self, flags: Dict[str, bool]):
        # A collaborator counts as available only if every call to it succeeded
        for name, ok in flags.items():
            self.telemetry.collaborators[name] = self.telemetry.collaborators.get(name, True) and ok

    def finish(self, state: PipelineState = PipelineState.DONE) -> PipelineTelemetry:
        self.transition(state)
        self.telemetry.duration_seconds = time.time() - self.started
        log_performance_metric(f"pipeline_{state.value}_time", self.telemetry.duration_seconds, "seconds")
        return self.telemetry


class PredictionPipeline:
    """
    Scan a sport's odds, deep-dive the promising fixtures and assemble
    Predictions.

    Args:
        odds_source: Required; an outright failure aborts the run
        signal_source: Optional; failures and timeouts count as no signals
        stats_source: Optional; feeds the corners and cards markets
        collaborator_timeout: Seconds allowed per collaborator call
        candidates: How many shortlisted fixtures best-pick mode analyzes
    """

    def __init__(
        self,
        odds_source: OddsSource,
        signal_source: Optional[SignalSource] = None,
        stats_source: Optional[TeamStatsSource] = None,
        synthesizer: Optional[FactorSynthesizer] = None,
        generator: Optional[MarketGenerator] = None,
        narrative_builder: Optional[NarrativeBuilder] = None,
        collaborator_timeout: float = COLLABORATOR_TIMEOUT,
        candidates: int = BEST_PICK_CANDIDATES,
    ):
        self.odds_source = odds_source
        self.signal_source = signal_source
        self.stats_source = stats_source
        self.synthesizer = synthesizer or FactorSynthesizer()
        self.generator = generator or MarketGenerator()
        self.narrative_builder = narrative_builder or NarrativeBuilder()
        self.collaborator_timeout = collaborator_timeout
        self.candidates = candidates

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def select_best_pick(self, sport: str, date_filter: Optional[str] = None) -> PipelineResult:
        """
        Analyze the top candidates and return the one with the highest
        expected value.

        Raises:
            NoHighValueFixtures: nothing cleared the shortlist threshold
            FixtureAnalysisError: every candidate's deep-dive failed
            PipelineError: the odds source failed outright
        """
        return await self._execute(sport, date_filter, best_pick=True)

    async def analyze_all(self, sport: str, date_filter: Optional[str] = None) -> PipelineResult:
        """Analyze every shortlisted fixture; failed fixtures are dropped. Sorted by primary edge."""
        return await self._execute(sport, date_filter, best_pick=False)

    async def _execute(self, sport: str, date_filter: Optional[str], best_pick: bool) -> PipelineResult:
        profile = get_sport_profile(sport)
        date_filter = validate_date_filter(date_filter)
        run = PipelineRun(sport, date_filter)
        mode = "best pick" if best_pick else "analyze all"
        logger.info(f"Pipeline start: {sport} ({mode}, date filter: {date_filter or 'none'})")

        try:
            shortlist = await self.scan(run, profile, date_filter)
            if best_pick:
                predictions = await self._best_pick(run, shortlist)
            else:
                predictions = await self._all(run, shortlist)
        except PredictionError:
            run.finish(PipelineState.FAILED)
            raise
        except Exception as e:
            run.finish(PipelineState.FAILED)
            raise PipelineError(f"{sport} pipeline failed: {e}") from e

        telemetry = run.finish()
        logger.info(
            f"Pipeline done: {len(predictions)} predictions from {telemetry.fixtures_scanned} fixtures "
            f"in {telemetry.duration_seconds:.2f}s"
        )
        return PipelineResult(predictions=predictions, telemetry=telemetry)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    @staticmethod
    def initial_edge(quote: OddsQuote) -> float:
        """Cheap triage edge in percentage points, assuming a fixed win probability."""
        odds = quote.reference_odds(DEFAULT_REFERENCE_ODDS)
        return (INITIAL_PROBABILITY_ESTIMATE * odds - 1.0) * 100.0

    async def scan(self, run: PipelineRun, profile: SportProfile, date_filter: Optional[str]) -> List[ShortlistEntry]:
        try:
            quotes = await asyncio.wait_for(self.odds_source.get_odds(profile.name), timeout=self.collaborator_timeout)
        except CollaboratorUnavailable as e:
            raise PipelineError(f"Odds unavailable for {profile.name}: {e}") from e
        except asyncio.TimeoutError as e:
            raise PipelineError(f"Odds source timed out after {self.collaborator_timeout}s") from e

        quotes = [q for q in quotes if matches_date_filter(q.fixture.kickoff_utc, date_filter)]
        run.telemetry.fixtures_scanned = len(quotes)
        for quote in quotes:
            run.telemetry.sources.extend(s for s in quote.sources if s not in run.telemetry.sources)

        shortlist = [ShortlistEntry(q, self.initial_edge(q)) for q in quotes]
        shortlist = [e for e in shortlist if e.initial_edge > SHORTLIST_EDGE_THRESHOLD]
        shortlist.sort(key=lambda e: e.initial_edge, reverse=True)
        run.telemetry.fixtures_shortlisted = len(shortlist)

        logger.info(f"Scanned {len(quotes)} {profile.name} fixtures, {len(shortlist)} shortlisted")
        return shortlist

    # ------------------------------------------------------------------
    # Deep dive
    # ------------------------------------------------------------------

    async def _call(self, name: str, factory: Callable[[], Awaitable[Any]], default: Any) -> Tuple[Any, bool]:
        """Await one collaborator call under the timeout; (default, False) if it fails."""
        try:
            result = await asyncio.wait_for(factory(), timeout=self.collaborator_timeout)
        except CollaboratorUnavailable as e:
            logger.warning(f"Collaborator {name} unavailable: {e}")
            return default, False
        except asyncio.TimeoutError:
            logger.warning(f"Collaborator {name} timed out after {self.collaborator_timeout}s")
            return default, False
        return (default if result is None else result), True

    async def _no_result(self):
        return None

    async def deep_dive(self, quote: OddsQuote, profile: SportProfile) -> FixtureAnalysis:
        fixture = quote.fixture
        signal_source, stats_source = self.signal_source, self.stats_source
        want_stats = stats_source is not None and profile.specialty_markets

        signals_call = self._call(
            "signals", (lambda: signal_source.get_signals(quote)) if signal_source else self._no_result, []
        )
        home_call = self._call(
            "team_stats",
            (lambda: stats_source.get_team_stats(fixture.home, fixture.sport, fixture.league)) if want_stats else self._no_result,
            None,
        )
        away_call = self._call(
            "team_stats",
            (lambda: stats_source.get_team_stats(fixture.away, fixture.sport, fixture.league)) if want_stats else self._no_result,
            None,
        )
        (observations, signals_ok), (home_stats, home_ok), (away_stats, away_ok) = await asyncio.gather(
            signals_call, home_call, away_call
        )

        collaborators = {}
        if signal_source is not None:
            collaborators["signals"] = signals_ok
        if want_stats:
            collaborators["team_stats"] = home_ok and away_ok

        observations = list(observations)
        estimate = self.synthesizer.synthesize(observations, quote)
        referee_strict = any(STRICT_REFEREE_TAG in o.tags for o in observations)

        ctx = MarketContext(quote, estimate.capped, profile, home_stats, away_stats, referee_strict)
        markets = self.generator.generate(ctx, quote.sources)
        primary = self.generator.select_primary(markets)
        if primary is None:
            raise FixtureAnalysisError(fixture.fixture_id, "no market could be priced")

        analysis = FixtureAnalysis(
            quote=quote,
            profile=profile,
            league_info=lookup_league(fixture.league, fixture.sport),
            observations=observations,
            estimate=estimate,
            markets=markets,
            primary=primary,
            expected_value=ValueAnalyzer.expected_value(estimate.capped, quote.reference_odds(DEFAULT_REFERENCE_ODDS)),
            confidence=ConfidenceScorer.analysis_confidence(estimate),
            home_stats=home_stats,
            away_stats=away_stats,
            collaborators=collaborators,
        )
        logger.info(
            f"Analyzed {fixture.match}: p={estimate.capped:.3f}, {len(markets)} markets, "
            f"primary {primary.selection} edge {primary.edge:+.1f}"
        )
        return analysis

    async def _analyze(self, quote: OddsQuote, profile: SportProfile) -> FixtureAnalysis:
        try:
            return await self.deep_dive(quote, profile)
        except FixtureAnalysisError:
            raise
        except Exception as e:
            raise FixtureAnalysisError(quote.fixture.fixture_id, f"deep dive failed: {e}") from e

    async def _deep_dive_many(self, run: PipelineRun, entries: Sequence[ShortlistEntry]) -> List[FixtureAnalysis]:
        run.transition(PipelineState.DEEP_DIVING)
        profile = get_sport_profile(run.telemetry.sport)
        results = await asyncio.gather(
            *(self._analyze(e.quote, profile) for e in entries), return_exceptions=True
        )

        analyses = []
        for entry, result in zip(entries, results):
            if isinstance(result, FixtureAnalysisError):
                run.telemetry.fixtures_failed += 1
                logger.error(f"Dropping {entry.quote.fixture.match}: {result}", exc_info=result)
            elif isinstance(result, BaseException):
                raise result
            else:
                run.merge_collaborators(result.collaborators)
                analyses.append(result)

        run.telemetry.fixtures_analyzed = len(analyses)
        return analyses

    # ------------------------------------------------------------------
    # Narrative and assembly
    # ------------------------------------------------------------------

    @staticmethod
    def contingency(analysis: FixtureAnalysis) -> Optional[ContingencyPick]:
        """Best remaining market from a different category than the primary."""
        primary = analysis.primary
        others = [m for m in analysis.markets if m.category != primary.category]
        if not others:
            return None
        market = max(others, key=lambda m: m.edge)
        return ContingencyPick(
            market=market,
            trigger_conditions=[
                f"If {primary.selection} odds drop below {max(1.01, primary.odds - CONTINGENCY_ODDS_DRIFT):.2f}",
                f"If {analysis.fixture.home} team news weakens the primary case",
            ],
        )

    @staticmethod
    def stability(analysis: FixtureAnalysis) -> str:
        if not analysis.observations or not all(analysis.collaborators.values()):
            return "Low"
        if analysis.confidence >= 7.3:
            return "High"
        return "Medium"

    def build_prediction(self, analysis: FixtureAnalysis) -> Prediction:
        narrative = self.narrative_builder.build(
            analysis.quote, analysis.estimate, analysis.observations, analysis.primary
        )
        return Prediction(
            fixture=analysis.fixture,
            league_info=analysis.league_info,
            markets=list(analysis.markets),
            primary_market=analysis.primary,
            probability=analysis.estimate,
            expected_value=analysis.expected_value,
            confidence_score=analysis.confidence * 10.0,
            narrative=narrative,
            risk=RiskAssessor.assess(analysis.primary, analysis.profile, analysis.observations),
            data_sources=analysis.data_sources,
            contingency=self.contingency(analysis),
            prediction_stability=self.stability(analysis),
        )

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    async def _best_pick(self, run: PipelineRun, shortlist: List[ShortlistEntry]) -> List[Prediction]:
        if not shortlist:
            raise NoHighValueFixtures(run.telemetry.sport)

        candidates = shortlist[: self.candidates]
        analyses = await self._deep_dive_many(run, candidates)
        if not analyses:
            ids = ", ".join(e.quote.fixture.fixture_id for e in candidates)
            raise FixtureAnalysisError(ids, f"all {len(candidates)} candidates failed")

        run.transition(PipelineState.BUILDING_NARRATIVE)
        predictions = [self.build_prediction(a) for a in analyses]

        run.transition(PipelineState.SELECTING)
        best = max(predictions, key=lambda p: p.expected_value)
        logger.info(f"Best pick: {best.fixture.match} - {best.primary_market.selection} (EV {best.expected_value:+.1f}%)")
        return [best]

    async def _all(self, run: PipelineRun, shortlist: List[ShortlistEntry]) -> List[Prediction]:
        if not shortlist:
            logger.info(f"No {run.telemetry.sport} fixture cleared the {SHORTLIST_EDGE_THRESHOLD}% threshold")
            return []

        analyses = await self._deep_dive_many(run, shortlist)

        run.transition(PipelineState.BUILDING_NARRATIVE)
        predictions = [self.build_prediction(a) for a in analyses]

        run.transition(PipelineState.SELECTING)
        predictions.sort(key=lambda p: p.edge, reverse=True)
        return predictions

"""Core data models."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Fixture:
    """A single scheduled match, fixed for the duration of one pipeline run."""
    fixture_id: str
    sport: str
    league: str
    home: str
    away: str
    kickoff_utc: str
    status: str = "upcoming"  # "upcoming", "live", "finished"

    @property
    def match(self) -> str:
        return f"{self.home} vs {self.away}"


@dataclass(frozen=True)
class MoneylineOdds:
    home: float
    away: float
    draw: Optional[float] = None


@dataclass(frozen=True)
class SpreadOdds:
    line: float
    odds: float


@dataclass(frozen=True)
class TotalsOdds:
    line: float
    over: float
    under: float


@dataclass(frozen=True)
class OddsQuote:
    """A bookmaker's prices for one fixture plus the sources that agree on them."""
    fixture: Fixture
    bookmaker: str
    moneyline: Optional[MoneylineOdds] = None
    spread: Optional[SpreadOdds] = None
    totals: Optional[TotalsOdds] = None
    sources: List[str] = field(default_factory=list)

    def reference_odds(self, default: float = 2.0) -> float:
        """Price used for triage and EV: spread, then home moneyline."""
        if self.spread and self.spread.odds:
            return self.spread.odds
        if self.moneyline and self.moneyline.home:
            return self.moneyline.home
        return default


@dataclass(frozen=True)
class FactorObservation:
    """One weighted signal from the Signal Aggregator."""
    category: str
    weight: float
    impact: float
    confidence: float = 50.0
    source: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()  # e.g. "strict_referee"

    @property
    def contribution(self) -> float:
        return self.impact * self.weight / 100.0


@dataclass(frozen=True)
class TeamForm:
    """Recent results for one team, newest first."""
    team: str
    results: str  # e.g. "WWDLW"
    goals_for: int = 0
    goals_against: int = 0
    home_wins: int = 0
    home_games: int = 0
    last_match_date: Optional[str] = None

    @property
    def games(self) -> int:
        return len(self.results)

    @property
    def wins(self) -> int:
        return self.results.count("W")

    @property
    def draws(self) -> int:
        return self.results.count("D")

    @property
    def losses(self) -> int:
        return self.results.count("L")

    @property
    def points_per_game(self) -> float:
        if not self.games:
            return 0.0
        return (self.wins * 3 + self.draws) / self.games


@dataclass(frozen=True)
class TeamStats:
    """Per-game averages feeding the corners and cards calculator."""
    team: str
    corners_for: Optional[float] = None
    corners_against: Optional[float] = None
    yellow_cards: Optional[float] = None
    red_cards: Optional[float] = None
    fouls: Optional[float] = None
    possession: Optional[float] = None


@dataclass(frozen=True)
class ThreeWayProbabilities:
    home: float
    draw: float
    away: float

    @property
    def total(self) -> float:
        return self.home + self.draw + self.away


@dataclass(frozen=True)
class TwoWayProbabilities:
    option1: float
    option2: float

    @property
    def total(self) -> float:
        return self.option1 + self.option2


@dataclass(frozen=True)
class CalibratedProbability:
    value: float
    lower: float
    upper: float

    def to_dict(self):
        return {
            "ensemble_average": round(self.value, 2),
            "calibrated_range": {"lower": round(self.lower, 2), "upper": round(self.upper, 2)},
        }


@dataclass(frozen=True)
class RecommendedStake:
    units: float
    percentage_of_bankroll: float
    description: str = "Quarter-Kelly formula applied"

    @property
    def kelly_fraction(self) -> str:
        return f"{self.units:.2f} Units"

    def to_dict(self):
        return {
            "kelly_fraction": self.kelly_fraction,
            "unit_description": self.description,
            "percentage_of_bankroll": round(self.percentage_of_bankroll, 2),
        }


@dataclass(frozen=True)
class MarketQuote:
    """One sellable betting line with its pricing and stake."""
    category: str
    selection: str
    odds: float
    bookmaker: str
    liquidity: str  # "High", "Medium", "Low"
    calculated_probability: CalibratedProbability
    implied_probability: float
    edge: float
    confidence_score: float
    stake: RecommendedStake
    data_sources: List[str] = field(default_factory=list)
    line: Optional[float] = None

    @property
    def market_id(self) -> str:
        return f"{self.category}:{self.selection}"

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "category": self.category,
            "selection": self.selection,
            "line": self.line,
            "odds": self.odds,
            "bookmaker": self.bookmaker,
            "market_liquidity": self.liquidity,
            "calculated_probability": self.calculated_probability.to_dict(),
            "implied_probability": round(self.implied_probability, 2),
            "edge": round(self.edge, 2),
            "confidence_score": round(self.confidence_score, 1),
            "recommended_stake": self.stake.to_dict(),
            "data_sources": list(self.data_sources),
        }


@dataclass(frozen=True)
class LeagueMetadata:
    name: str
    display_name: str
    country: str
    region: str
    tier: str
    type: str  # "League", "Cup", "Tournament", "International"
    sport: str
    popularity: str  # "High", "Medium", "Low"

    def to_dict(self):
        return {
            "name": self.name,
            "display_name": self.display_name,
            "country": self.country,
            "region": self.region,
            "tier": self.tier,
            "type": self.type,
            "sport": self.sport,
            "popularity": self.popularity,
        }


@dataclass(frozen=True)
class ProbabilityEstimate:
    """Factor synthesis output, kept whole for transparency."""
    raw: float
    capped: float
    market_implied: float
    total_impact: float
    factor_count: int
    contributions: Dict[str, float] = field(default_factory=dict)

    @property
    def adjustment(self) -> float:
        return self.capped - 0.5

    def to_dict(self):
        return {
            "raw": round(self.raw, 4),
            "capped": round(self.capped, 4),
            "market_implied": round(self.market_implied, 4),
            "total_impact": round(self.total_impact, 3),
            "factor_count": self.factor_count,
            "contributions": {k: round(v, 3) for k, v in self.contributions.items()},
        }


@dataclass(frozen=True)
class Narrative:
    game_script: str
    market_edge: str
    failure_point: str
    key_features: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self):
        return {
            "summary": self.game_script,
            "deep_dive": [self.market_edge, self.failure_point],
            "narrative_debunking": self.failure_point,
            "key_features": list(self.key_features),
        }


@dataclass(frozen=True)
class RiskAssessment:
    var: float
    cvar: float
    sensitivity_analysis: str
    key_risks: List[str] = field(default_factory=list)
    potential_failures: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "var": self.var,
            "cvar": self.cvar,
            "sensitivity_analysis": self.sensitivity_analysis,
            "key_risks": list(self.key_risks),
            "potential_failures": list(self.potential_failures),
        }


@dataclass(frozen=True)
class ContingencyPick:
    market: MarketQuote
    trigger_conditions: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "bet_type": self.market.selection,
            "category": self.market.category,
            "odds": self.market.odds,
            "confidence_score": round(self.market.confidence_score, 1),
            "stake_size": f"{self.market.stake.units * 0.75:.2f} Units",
            "trigger_conditions": list(self.trigger_conditions),
        }


@dataclass(frozen=True)
class Prediction:
    """Aggregate output for one fixture."""
    fixture: Fixture
    league_info: LeagueMetadata
    markets: List[MarketQuote]
    primary_market: MarketQuote
    probability: ProbabilityEstimate
    expected_value: float
    confidence_score: float
    narrative: Narrative
    risk: RiskAssessment
    data_sources: List[str] = field(default_factory=list)
    contingency: Optional[ContingencyPick] = None
    prediction_stability: str = "High"
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def edge(self) -> float:
        return self.primary_market.edge

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.fixture.fixture_id,
            "sport": self.fixture.sport,
            "match": self.fixture.match,
            "teams": {"home": self.fixture.home, "away": self.fixture.away},
            "league": self.fixture.league,
            "league_info": self.league_info.to_dict(),
            "kickoff": self.fixture.kickoff_utc,
            "status": self.fixture.status,
            "primary_market": self.primary_market.to_dict(),
            "markets": [m.to_dict() for m in self.markets],
            "probability": self.probability.to_dict(),
            "expected_value": round(self.expected_value, 2),
            "confidence_score": round(self.confidence_score, 1),
            "prediction_stability": self.prediction_stability,
            "justification": self.narrative.to_dict(),
            "risk_assessment": self.risk.to_dict(),
            "contingency_pick": self.contingency.to_dict() if self.contingency else None,
            "data_sources": list(self.data_sources),
            "total_data_sources": len(self.data_sources),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    timestamp: float

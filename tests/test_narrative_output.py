import csv
import json

import pytest

from analysis.factors import FactorSynthesizer
from analysis.risk import GENERIC_FAILURES, RiskAssessor
from config.sports import get_sport_profile
from core.models import FactorObservation
from markets.generator import MarketGenerator
from markets.pricing import MarketContext
from pipeline.narrative import NarrativeBuilder
from pipeline.orchestrator import PredictionPipeline
from storage.output_manager import OutputManager

from conftest import FakeOddsSource, FakeSignalSource, make_quote

from main import parse_arguments


@pytest.fixture
def priced(quote, positive_observations):
    estimate = FactorSynthesizer().synthesize(positive_observations, quote)
    markets = MarketGenerator().generate(MarketContext(quote, estimate.capped, get_sport_profile("Football")), quote.sources)
    return estimate, MarketGenerator.select_primary(markets)


def test_narrative_fields(quote, positive_observations, priced):
    estimate, primary = priced
    narrative = NarrativeBuilder().build(quote, estimate, positive_observations, primary)

    assert "Arsenal" in narrative.game_script
    assert "Home side presses high" in narrative.game_script
    assert primary.selection in narrative.market_edge
    assert "Away side rested two extra days" in narrative.failure_point
    assert [f["feature"] for f in narrative.key_features] == ["Tactical", "Form", "Fatigue"]
    assert [f["impact"] for f in narrative.key_features] == ["positive", "positive", "negative"]


def test_narrative_without_signals(quote, priced):
    _, primary = priced
    estimate = FactorSynthesizer().synthesize([], quote)
    narrative = NarrativeBuilder().build(quote, estimate, [], primary)
    assert "base rate" in narrative.game_script
    assert "No signal points against the pick" in narrative.failure_point
    assert narrative.key_features == []


def test_risk_assessment(priced):
    _, primary = priced
    risk = RiskAssessor.assess(primary, get_sport_profile("Hockey"))
    assert risk.var == round(primary.stake.units * 0.95, 2)
    assert risk.cvar == round(primary.stake.units * 1.2, 2)
    assert risk.key_risks == get_sport_profile("Hockey").key_risks
    assert risk.potential_failures == GENERIC_FAILURES
    assert risk.sensitivity_analysis


def test_risk_lists_most_negative_factors_first(priced):
    _, primary = priced
    observations = [
        FactorObservation(category="fatigue", weight=5, impact=-2.0, description="Short rest"),
        FactorObservation(category="form", weight=25, impact=-3.0, description="Poor run"),
        FactorObservation(category="tactical", weight=35, impact=4.0, description="Better shape"),
    ]
    risk = RiskAssessor.assess(primary, get_sport_profile("Football"), observations)
    assert risk.potential_failures == ["Poor run", "Short rest"]


@pytest.mark.asyncio
async def test_output_files(tmp_path, positive_observations):
    pipeline = PredictionPipeline(FakeOddsSource([make_quote("fx-1")]), FakeSignalSource(positive_observations))
    result = await pipeline.analyze_all("Football")
    output = OutputManager(str(tmp_path / "out"))

    json_path = output.save_predictions_json(result)
    document = json.loads(json_path.read_text(encoding="utf-8"))
    assert document["telemetry"]["fixtures_analyzed"] == 1
    assert document["predictions"][0]["id"] == "fx-1"

    csv_path = output.save_markets_csv(result.predictions)
    with open(csv_path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == len(result.predictions[0].markets)
    assert sum(1 for r in rows if r["Primary"] == "yes") == 1


def test_print_summary(capsys, tmp_path):
    output = OutputManager(str(tmp_path))
    output.print_summary([], top_n=5)
    assert "TOP 0 PREDICTIONS" in capsys.readouterr().out


def test_cli_arguments():
    args = parse_arguments(["--sport", "Hockey", "--mode", "all", "--date", "tomorrow", "--sample"])
    assert (args.sport, args.mode, args.date, args.sample, args.top_n) == ("Hockey", "all", "tomorrow", True, 10)

    with pytest.raises(SystemExit):
        parse_arguments(["--date", "someday"])
    with pytest.raises(SystemExit):
        parse_arguments(["--sport", "Curling"])

"""Write predictions to disk and print a console summary."""
import csv
import json
from pathlib import Path
from typing import Any, List

from config.settings import OUTPUT_DIR
from core.models import Prediction
from pipeline.orchestrator import PipelineResult


class OutputManager:
    """JSON document per run, CSV of every priced market, console summary."""

    def __init__(self, output_dir: str = OUTPUT_DIR):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save_json(self, filename: str, data: Any) -> Path:
        path = self.output_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        return path

    def save_predictions_json(self, result: PipelineResult, filename: str = "predictions.json") -> Path:
        return self.save_json(filename, result.to_dict())

    def save_markets_csv(self, predictions: List[Prediction], filename: str = "markets.csv") -> Path:
        """One row per market across all predictions; the primary market is flagged."""
        path = self.output_dir / filename

        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow([
                "League", "Kickoff", "Home", "Away", "Bookmaker",
                "Category", "Selection", "Odds", "Calculated %", "Implied %",
                "Edge", "Confidence", "Stake Units", "Primary",
            ])

            for prediction in predictions:
                fixture = prediction.fixture
                for market in prediction.markets:
                    writer.writerow([
                        fixture.league,
                        fixture.kickoff_utc,
                        fixture.home,
                        fixture.away,
                        market.bookmaker,
                        market.category,
                        market.selection,
                        f"{market.odds:.2f}",
                        f"{market.calculated_probability.value:.1f}",
                        f"{market.implied_probability:.2f}",
                        f"{market.edge:.2f}",
                        f"{market.confidence_score:.1f}",
                        f"{market.stake.units:.2f}",
                        "yes" if market.market_id == prediction.primary_market.market_id else "",
                    ])
        return path

    def print_summary(self, predictions: List[Prediction], top_n: int = 10):
        """Print summary of the top predictions to console."""
        print("\n" + "=" * 100)
        print(f"TOP {min(top_n, len(predictions))} PREDICTIONS")
        print("=" * 100)

        for i, p in enumerate(predictions[:top_n], 1):
            primary = p.primary_market
            print(f"\n{i}. {p.fixture.match}")
            print(f"   League: {p.league_info.display_name} | Kickoff: {p.fixture.kickoff_utc} | Status: {p.fixture.status}")
            print(f"   Pick: {primary.selection} @ {primary.odds:.2f} ({primary.bookmaker})")
            print(f"   Calculated: {primary.calculated_probability.value:.1f}% | Implied: {primary.implied_probability:.1f}%"
                  f" | Edge: {primary.edge:+.2f}")
            print(f"   Stake: {primary.stake.kelly_fraction} | EV: {p.expected_value:+.1f}%"
                  f" | Confidence: {p.confidence_score:.0f} | Stability: {p.prediction_stability}")
            if p.contingency:
                print(f"   Contingency: {p.contingency.market.selection} @ {p.contingency.market.odds:.2f}")

        print("\n" + "=" * 100)

"""Application settings and configuration."""
import os

# Directories
OUTPUT_DIR = "output"
LOGS_DIR = "logs"

# HTTP Settings
HTTP_TIMEOUT = 25
HTTP_CONCURRENCY = 12
HTTP_RETRIES = 2
COLLABORATOR_TIMEOUT = 20  # seconds per external collaborator call

# The Odds API (free tier: 500 requests/month)
ODDS_API_KEY = os.getenv("ODDS_API_KEY", "")
ODDS_API_BASE_URL = "https://api.the-odds-api.com/v4"
ODDS_API_MONTHLY_LIMIT = 500
ODDS_API_REGIONS = "us,uk,eu"
ODDS_API_MAX_EVENTS = 10

# TheSportsDB (free key "3")
SPORTSDB_BASE_URL = "https://www.thesportsdb.com/api/v1/json/3"
SPORTSDB_FORM_GAMES = 5

# Optional JSON files for offline sources
SAMPLE_ODDS_FILE = os.getenv("SAMPLE_ODDS_FILE", "")
TEAM_STATS_FILE = os.getenv("TEAM_STATS_FILE", "")

# Probability bounds (percentage points)
MIN_PROBABILITY = 5.0
MAX_PROBABILITY = 95.0
PROBABILITY_DECIMALS = 1
NORMALIZATION_TOLERANCE = 0.001
NORMALIZATION_MAX_PASSES = 3

# Factor synthesis
BASE_PROBABILITY = 0.50
TRUE_PROBABILITY_FLOOR = 0.45
TRUE_PROBABILITY_CAP = 0.75
FACTOR_WEIGHT_CAPACITY = 100.0
FACTOR_WEIGHTS = {
    "tactical": 35,
    "form": 25,
    "situational": 20,
    "psychological": 10,
    "environmental": 10,
    "social": 5,
    "referee": 5,
    "betting": 8,
    "venue": 7,
    "fatigue": 5,
    "advanced": 25,
}

# Staking
KELLY_FRACTION = 0.25  # Quarter Kelly (conservative)
MIN_STAKE_UNITS = 0.5
MAX_STAKE_UNITS = 3.0

# Confidence
MIN_CONFIDENCE = 20.0
MAX_CONFIDENCE = 96.0

# Synthesized market pricing
DOUBLE_CHANCE_MARGIN = 0.05
CORRECT_SCORE_MARGIN = 0.15
CORNERS_MARGIN = 0.08
CARDS_MARGIN = 0.10
FIRST_HALF_ODDS_FACTORS = {"home": 1.3, "away": 1.3, "draw": 0.7}
FIRST_HALF_ADJUSTMENT_DAMPING = 0.6

# Share of the parent outcome's probability allocated to each scoreline
CORRECT_SCORE_FRACTIONS = {
    "home": {"1-0": 0.20, "2-1": 0.18, "2-0": 0.15},
    "draw": {"1-1": 0.30, "0-0": 0.20},
    "away": {"0-1": 0.20, "1-2": 0.15},
}

# Pipeline
INITIAL_PROBABILITY_ESTIMATE = 0.55
SHORTLIST_EDGE_THRESHOLD = 3.0  # percentage points
BEST_PICK_CANDIDATES = 3
DEFAULT_SPORT = "Football"
DEFAULT_REFERENCE_ODDS = 2.0

# Result cache
CACHE_TTL_SECONDS = 5 * 60

# Logging
DEBUG_MODE = os.getenv("DEBUG", "0") == "1"
VERBOSE = True

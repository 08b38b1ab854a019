"""Logging configuration for market-edge tracking and performance metrics."""
import logging
import sys
from pathlib import Path
from datetime import datetime
from config.settings import LOGS_DIR, DEBUG_MODE


def setup_logging(session_name: str = "apex", logs_dir: str = LOGS_DIR):
    """Setup structured logging for the application."""

    # Create logs directory
    Path(logs_dir).mkdir(exist_ok=True)

    # Create timestamp for this session
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)

    # Remove existing handlers
    root_logger.handlers = []

    # Console handler - INFO level
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler - DEBUG level for main log
    main_log_file = Path(logs_dir) / f"{session_name}_{timestamp}.log"
    file_handler = logging.FileHandler(main_log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Edge tracking logger - one pipe-separated line per priced market
    edge_log_file = Path(logs_dir) / f"market_edges_{timestamp}.log"
    _setup_pipe_logger('edge_tracker', edge_log_file)

    # Performance logger
    perf_log_file = Path(logs_dir) / f"performance_{timestamp}.log"
    _setup_pipe_logger('performance', perf_log_file)

    logging.info(f"Logging initialized - Session: {session_name}_{timestamp}")
    logging.info(f"Main log: {main_log_file}")
    logging.info(f"Edge tracking log: {edge_log_file}")

    return timestamp


def _setup_pipe_logger(name: str, log_file: Path):
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False  # Don't propagate to root
    logger.handlers = []

    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter('%(asctime)s|%(message)s', datefmt='%Y-%m-%d %H:%M:%S'))
    logger.addHandler(handler)


def log_market_edge(
    league: str,
    match: str,
    bookmaker: str,
    category: str,
    selection: str,
    odds: float,
    probability: float,
    implied: float,
    edge: float,
    stake_units: float
):
    """Log a priced market in structured format for analysis."""
    logger = logging.getLogger('edge_tracker')
    logger.info(
        f"{league}|{match}|{bookmaker}|{category}|{selection}|"
        f"{odds:.3f}|{probability:.1f}|{implied:.2f}|{edge:.2f}|{stake_units:.2f}"
    )


def log_performance_metric(metric_name: str, value: float, unit: str = ""):
    """Log performance metrics."""
    logger = logging.getLogger('performance')
    logger.info(f"{metric_name}|{value:.3f}|{unit}")

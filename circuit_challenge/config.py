from pathlib import Path

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Results directories (created on demand by the scripts)
RESULTS_DIR = PROJECT_ROOT / "results"
RESULTS_PUZZLES_DIR = RESULTS_DIR / "puzzles"
RESULTS_BENCHMARKS_DIR = RESULTS_DIR / "benchmarks"

# Path search
PATH_MAX_RESTARTS = 40
PATH_MAX_ITERATIONS = 4000

# Connector value assignment
CONNECTOR_MAX_ATTEMPTS = 12
CONNECTOR_MAX_BACKTRACKS = 3000
DIVISION_CONNECTOR_RATIO = 0.25

# Expression synthesis
EXPRESSION_ATTEMPTS = 10
MAX_DIVIDEND = 1000
MAX_DIVISOR_CAP = 12

# Pipeline
GENERATOR_MAX_ATTEMPTS = 30

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

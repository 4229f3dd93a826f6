import os
from pathlib import Path


# Repository root (src/platform/constant -> root)
BASE_DIR = Path(__file__).resolve().parents[3]

# Rotating log files; tests redirect them through TEST_LOG_DIR
LOG_DIR = Path(os.environ.get('TEST_LOG_DIR') or BASE_DIR / 'logs')

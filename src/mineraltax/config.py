"""Configuration: paths, company defaults, logging level."""

import os
from pathlib import Path

# Base directory for the local ledger
DATA_DIR = Path(os.environ.get("MINERALTAX_DATA_DIR", Path.cwd() / "data"))
LEDGER_PATH = DATA_DIR / "ledger.json"

# Company RC number used when a machine carries none
COMPANY_RC_NUMBER = os.environ.get("MINERALTAX_COMPANY_RC", "")

LOG_LEVEL = os.environ.get("MINERALTAX_LOG_LEVEL", "WARNING")

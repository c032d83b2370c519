#!/usr/bin/env python3
"""Entry point: run the scrape and email schedulers."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from gigscout.runner import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

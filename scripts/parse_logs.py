#!/usr/bin/env python3
"""
CLI script for parsing log files from a source checkout.

Usage:
    # TeamCity build log, keeping only the "Compile" block
    python scripts/parse_logs.py --type teamcity --input build.log --blocks Compile

    # IIS statistics
    python scripts/parse_logs.py --type iis --input u_ex240115.log --stats-only

    # List available log types
    python scripts/parse_logs.py --list-types
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sharky_parser.cli import main

if __name__ == "__main__":
    sys.exit(main())

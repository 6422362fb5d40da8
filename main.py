"""
Entry point for examdeck.

Run with:
    python main.py --help
    python main.py ingest exams/
    python main.py exams
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from examdeck.cli.main import main

if __name__ == "__main__":
    main()

"""Review a single message from the command line.

Usage:
    python scripts/run_qa_review.py "Hi Anna, the fix is live: https://status.example.com"
    echo "fix it now" | python scripts/run_qa_review.py --no-links
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from qa_review.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""
Lets you say `python -m functoys ...` instead of `functoys ...`.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from functoys.cmdline import main

main()

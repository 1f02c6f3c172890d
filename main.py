#!/usr/bin/env python3
"""ASNINFO main entry point.

Usage::

    python main.py generate asninfo.jsonl
    python main.py serve --bind 0.0.0.0:8080
    python main.py version
    python main.py config
"""

from asninfo.cli import main

if __name__ == "__main__":
    main()

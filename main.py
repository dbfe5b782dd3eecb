#!/usr/bin/env python3
"""
main.py - Quick-start entry point.

    python main.py preprocess ~/Pictures processed/
    python main.py create processed/ model.jpg mosaic.png

Or use the module directly:

    python -m photo_mosaic.cli --help
"""

from photo_mosaic.cli import app

if __name__ == "__main__":
    app()

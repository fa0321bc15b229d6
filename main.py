#!/usr/bin/env python3
"""
Main entry point for mechbot
"""

from mechbot.main import run

if __name__ == "__main__":
    run()

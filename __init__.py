"""
Riot Tests - browser sessions and end-to-end scenarios for the web chat client.

This package provides:
- Session: one headless browser + page per simulated user
- Console and network log capture for failure triage
- A pytest-based scenario runner with JSONL reports

Usage:
    CLI: riot-tests run
"""

__version__ = "1.0.0"

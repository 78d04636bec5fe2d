"""
Hot Issue Tagger.

This package classifies support tickets into a reusable tag taxonomy
using LLM-based analysis and reports tag usage over time windows.
"""

__version__ = "1.0.0"

#!/usr/bin/env python3
"""
QuickLens - point-and-query explanations in a transient popup
"""

__version__ = "1.0.0"

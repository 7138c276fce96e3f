#!/usr/bin/env python3
"""
setuptools setup script for QuickLens

Install commands:
    pip install -e .            # Editable install with the quicklens command
    pip install -e .[test]      # Plus test tooling
"""

from setuptools import setup

# ─── Dependencies ─────────────────────────────────────────────────────────────

install_requires = [
    "flask",
    "requests",
    "pynput",
    "pyperclip",
    "darkdetect",
    "rich",
]

extras_require = {
    "test": [
        "pytest",
    ],
}

# ─── Setup ────────────────────────────────────────────────────────────────────

setup(
    name="quicklens",
    version="1.0.0",
    description="Point-and-query explanations in a transient popup",
    author="QuickLens",
    python_requires=">=3.8",
    packages=["quicklens", "quicklens.gui"],
    py_modules=["main"],
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "quicklens=main:main",
        ],
    },
)

#!/usr/bin/env python3
"""
Ignite Client Setup Script
==========================
Allows installation of the ignite-client package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="ignite-client",
    version="1.0.0",
    description="Blocking client for the Apache Ignite binary thin-client protocol",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "ignite-client=ignite_client.cli:main",
        ],
    },
)

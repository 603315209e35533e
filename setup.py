#!/usr/bin/env python3
"""
skkserv Setup Script
====================
Allows installation of the skkserv package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="skkserv",
    version="1.0.0",
    packages=find_packages(include=["skkserv", "skkserv.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "skkserv=skkserv.server:main",
        ],
    },
)

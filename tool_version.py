#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shared tool version for the oracle_loader entry script.

Keep this as the single source of truth for the version shown by
oracle_loader.py --version and in pyproject.toml.
"""

__version__ = "1.11.0"

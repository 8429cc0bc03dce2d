# SPDX-License-Identifier: MIT
"""
Market package

Provides:
- Per-stock expected value analysis and candidate ranking
- Portfolio manager with simulated and live trade execution
"""

"""
Test helper utilities for CPR recorder testing.

This module provides reusable utilities for:
- Controlling time through a manual clock
- Building sessions with known event sequences
"""

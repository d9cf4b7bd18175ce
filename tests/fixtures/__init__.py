"""Test fixtures and helpers for signal generator tests."""

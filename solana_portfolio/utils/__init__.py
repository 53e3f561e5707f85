"""Utility modules for the portfolio engine."""

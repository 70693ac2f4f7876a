"""Utility helpers for the lead discovery engine."""

"""Utility helpers for voicegen (timing)."""

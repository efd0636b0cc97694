"""Utility helpers shared across SplitDeck."""

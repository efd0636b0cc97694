"""Event channel and reference pane view."""

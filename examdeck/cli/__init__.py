"""Command-line interface for examdeck."""

"""Reusable behavioural patterns."""

"""Process settings and logging presets."""

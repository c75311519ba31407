"""Static game-version templates and rule presets."""

"""VibeWatch: vibe-prompt movie and TV recommendations."""

__version__ = "1.0.0"

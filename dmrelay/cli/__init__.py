"""CLI module for dmrelay."""

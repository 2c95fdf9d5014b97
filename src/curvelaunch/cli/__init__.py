"""Command-line interface for curvelaunch."""

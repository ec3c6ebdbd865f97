"""Command-line interface for TrafficLens."""

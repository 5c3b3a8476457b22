"""CLI interface for finsight."""

"""Domain models for Approv."""

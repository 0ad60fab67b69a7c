"""Sample data seeds."""

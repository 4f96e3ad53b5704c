"""Application services and persistence ports."""

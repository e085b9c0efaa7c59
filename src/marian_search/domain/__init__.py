"""Domain layer - sync input, stored documents, and search responses."""

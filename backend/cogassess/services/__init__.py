"""Services with side effects (content generation)."""

"""Repository acquisition."""

"""Infrastructure adapters implementing the review queue ports."""

"""Read-side queries over the populated store."""

"""HTTP surface for the workflow controller."""

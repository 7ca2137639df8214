"""HTTP surface for the growth engine."""

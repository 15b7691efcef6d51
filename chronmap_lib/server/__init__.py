"""HTTP admin surface for the store registry."""

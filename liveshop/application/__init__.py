"""Application layer: workflows that combine domain rules with infrastructure."""

"""Sigma coin model: denominations, commitments and coins."""

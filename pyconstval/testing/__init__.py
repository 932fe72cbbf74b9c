"""Hypothesis strategies for testing code built on PyConstVal."""

"""Workflows built on the discount engine."""

"""Adapters connecting the DRA driver to external systems."""

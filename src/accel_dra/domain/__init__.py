"""Accelerator DRA driver domain layer."""

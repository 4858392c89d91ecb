"""Outbound email for completed and shared plans."""

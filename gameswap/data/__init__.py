"""Seed data."""

from gameswap.data.defaults import default_accounts

__all__ = ["default_accounts"]

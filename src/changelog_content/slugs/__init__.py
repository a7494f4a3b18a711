"""Slug derivation and scope-unique resolution."""

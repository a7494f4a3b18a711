"""Conversion of block-tree documents to and from markup."""

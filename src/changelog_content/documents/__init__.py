"""Block-tree document model, validation and plain-text derivation."""

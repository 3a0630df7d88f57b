"""Live behavioral state classification from body pose sequences."""

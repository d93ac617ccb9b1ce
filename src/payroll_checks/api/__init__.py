"""HTTP host for the review and commit entry points."""

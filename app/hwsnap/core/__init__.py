"""Configuration and path resolution for hwsnap."""

"""Path-based preprocessing chains for static site sources."""

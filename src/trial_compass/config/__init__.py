"""Runtime configuration for the backend clients."""

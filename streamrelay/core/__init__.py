"""Core building blocks shared across the streamrelay package."""

"""notify/ -- Fire-and-forget welcome notifications."""

"""core/ -- Kernel: configuration and shared enums. Imports nothing from the other packages."""

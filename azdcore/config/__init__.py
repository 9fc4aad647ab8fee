"""Nested configuration with dotted paths, a secret vault and JSON persistence."""
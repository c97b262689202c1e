"""
Configuration layer.

Process settings come from the environment (pydantic-settings); logging is
configured from those settings at startup.
"""

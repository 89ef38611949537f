"""Domain layer — API object builders, extraction, describers, injector.

This layer depends only on the stdlib.
It must never import from services, infrastructure, commands, or config.
"""

"""Infrastructure layer — rule graph, YAML emission, kubectl.

This layer depends on stdlib and third-party libs (NetworkX, ruamel.yaml).
It must never import from services, commands, or output.
"""

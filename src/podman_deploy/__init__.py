"""podman-deploy — declarative pod and container deployment on a single host.

Reads a YAML description of pods, containers, mounts, ports and registry
credentials, and drives their lifecycle through the ``podman`` CLI.
"""

__version__ = "0.1.0"

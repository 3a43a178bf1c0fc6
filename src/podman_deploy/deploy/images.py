"""Image reference normalization.

The runtime reports fully-qualified names (``docker.io/library/nginx:1.21``)
for images the configuration may spell short (``nginx:1.21``). Both sides
are normalized before comparing, and compared as whole strings.

Tags are never inferred: ``nginx`` and ``nginx:latest`` are different
references, so configuration should always pin an explicit tag.
"""

from __future__ import annotations

DOCKER_HUB_LIBRARY_PREFIX = "docker.io/library/"
DOCKER_HUB_PREFIX = "docker.io/"


def normalize_image(ref: str) -> str:
    """Strip an implicit Docker Hub registry/library prefix.

    >>> normalize_image("docker.io/library/nginx:1.21")
    'nginx:1.21'
    >>> normalize_image("docker.io/myorg/app:2")
    'myorg/app:2'
    >>> normalize_image("myregistry.com/app:2")
    'myregistry.com/app:2'
    """
    # Strip to a fixed point; doubled prefixes collapse fully.
    while True:
        if ref.startswith(DOCKER_HUB_LIBRARY_PREFIX):
            ref = ref[len(DOCKER_HUB_LIBRARY_PREFIX):]
        elif ref.startswith(DOCKER_HUB_PREFIX):
            ref = ref[len(DOCKER_HUB_PREFIX):]
        else:
            return ref


def images_match(desired: str, observed: str) -> bool:
    """Whether two references name the same image after normalization."""
    return normalize_image(desired) == normalize_image(observed)

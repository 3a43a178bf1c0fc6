"""
CLI layer for podman-deploy.

A Typer application whose commands build an ``Operation`` and hand it to
``podman_deploy.deploy.operations.dispatch``. All lifecycle logic lives in
``podman_deploy.deploy``; this package only parses arguments and renders
reports.

Entry point::

    podman-deploy --help
"""

from podman_deploy.cli.app import app

__all__ = ["app"]

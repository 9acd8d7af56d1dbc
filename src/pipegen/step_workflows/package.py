# step_workflows/package.py
from __future__ import annotations

from typing import List

from ..catalog import resolve
from ..dsl import sh, uses
from ..model import Step

UPLOAD_ACTION = "actions/upload-artifact@v4"
ARTIFACT_NAME = "extension-package"


def package_steps(component) -> List[Step]:
    """Fixed packaging step followed by publication of the packaged artifact."""
    entry = resolve(component.language)
    directory = component.directory
    artifact = f"{directory.rstrip('/')}/{entry.package_artifact}" if directory else entry.package_artifact
    return [
        sh("Package extension", entry.package_command, cwd=directory or None),
        uses(
            "Upload extension artifact",
            UPLOAD_ACTION,
            with_args={"name": ARTIFACT_NAME, "path": artifact, "if-no-files-found": "error"},
        ),
    ]

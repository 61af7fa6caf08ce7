"""
Output planning and writing.

:class:`OutputPlanner` maps artifacts to logical, POSIX-style paths under
their category folder and computes the relative import specifiers between
them. Writers put the generated text on disk (or only record it).
"""

import os
import posixpath
from typing import Dict, List

from .generator import is_jsx
from .transformer.target import Artifact, ArtifactRef, ReactComponentArtifact, StyleArtifact
from .utils.file_utils import write_file
from .utils.logger import get_logger

logger = get_logger(__name__)

TESTS_FOLDER = "__tests__"


class OutputPlanner:
    """Decides where every artifact lives in the output tree."""

    def __init__(self, use_typescript: bool = True, preserve_structure: bool = False):
        self.use_typescript = use_typescript
        self.preserve_structure = preserve_structure

    def _directory(self, ref: ArtifactRef) -> str:
        if self.preserve_structure and ref.source_path:
            source_dir = posixpath.dirname(ref.source_path)
            if source_dir:
                return posixpath.join(ref.category, source_dir)
        return ref.category

    def module_path(self, ref: ArtifactRef) -> str:
        """Path of the module without its extension (unless the extension is fixed)."""
        path = posixpath.join(self._directory(ref), ref.name)
        return path + ref.extension if ref.extension else path

    def extension(self, artifact: Artifact) -> str:
        if isinstance(artifact, StyleArtifact):
            return ""
        if is_jsx(artifact):
            return ".tsx" if self.use_typescript else ".jsx"
        return ".ts" if self.use_typescript else ".js"

    def path_for(self, artifact: Artifact) -> str:
        """
        Logical output path of an artifact.

        Args:
            artifact: The artifact to place

        Returns:
            Path relative to the output directory, e.g. ``components/UserCard.tsx``
        """
        return self.module_path(artifact.ref) + self.extension(artifact)

    def test_path(self, artifact: ReactComponentArtifact) -> str:
        directory = posixpath.join(self._directory(artifact.ref), TESTS_FOLDER)
        extension = ".tsx" if self.use_typescript else ".jsx"
        return posixpath.join(directory, f"{artifact.name}.test{extension}")

    def import_path(self, from_path: str, target: ArtifactRef) -> str:
        """
        Import specifier of ``target`` as seen from the module at ``from_path``.

        Args:
            from_path: Logical path of the importing module
            target: Referenced artifact

        Returns:
            Relative specifier such as ``../hooks/useUserService``
        """
        relative = posixpath.relpath(self.module_path(target), posixpath.dirname(from_path) or ".")
        return relative if relative.startswith("../") else f"./{relative}"


class FileWriter:
    """Writes generated files below the output directory."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        self.written: List[str] = []

    def write(self, path: str, content: str) -> bool:
        full_path = os.path.join(self.output_dir, *path.split("/"))
        if not write_file(full_path, content):
            return False
        self.written.append(path)
        return True


class DryRunWriter:
    """Records the files a run would write without touching the file system."""

    def __init__(self):
        self.files: Dict[str, str] = {}

    @property
    def written(self) -> List[str]:
        return list(self.files)

    def write(self, path: str, content: str) -> bool:
        logger.debug(f"[dry run] would write {path}")
        self.files[path] = content
        return True

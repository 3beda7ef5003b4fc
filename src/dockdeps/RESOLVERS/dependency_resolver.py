# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Resolution of the local files a Dockerfile build depends on.
"""
import logging
import os
from typing import Dict, List, Optional, Set

from .ignore_filter import apply_docker_ignore
from ..MODELS.dockerfile_ast import (
    AnyInstruction,
    CopyInstruction,
    DockerfileAST,
    EnvInstruction,
    InstructionKind,
)
from ..MODELS.resolution import ResolutionResult, ResolutionWarning, WarningStage
from ..MODELS.settings import ResolverSettings
from ..PARSERS.dockerfile_parser import DockerfileParser
from ..REGISTRY.base_image_resolver import BaseImageResolver
from ..UTILS.filesystem import FileSystem, LocalFileSystem
from ..UTILS.path_expansion import expand_paths, join_workspace
from ..UTILS.string_interpolation import ShellWordExpander
from ..exceptions import (
    DockerfileOpenError,
    DockerfileParseError,
    ImageLookupError,
    OnbuildTriggerError,
)

logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ("http://", "https://")


class _Walk:
    """
    Accumulators of one resolution call: the environment table and the
    dependency set. Never shared between calls.
    """
    def __init__(self, workspace: str, expander: ShellWordExpander):
        self.workspace = workspace
        self.expander = expander
        self.envs: Dict[str, str] = {}
        self.deps: Set[str] = set()

    def dispatch(self, instruction: AnyInstruction) -> None:
        if instruction.kind in (InstructionKind.ADD, InstructionKind.COPY):
            self.process_copy(instruction)
        elif instruction.kind == InstructionKind.ENV:
            self.process_env(instruction)

    def process_copy(self, instruction: CopyInstruction) -> None:
        # Sources from another build stage are not files in the workspace
        if instruction.stage_source is not None:
            return

        snapshot = dict(self.envs)
        for source in instruction.sources:
            src = self.expander.process_word(source, snapshot)
            if src.startswith(REMOTE_PREFIXES):
                logger.debug("Skipping watch on remote dependency %s", src)
                continue
            self.deps.add(join_workspace(self.workspace, src))

    def process_env(self, instruction: EnvInstruction) -> None:
        # Every value of one ENV sees the table as it was before the instruction
        snapshot = dict(self.envs)
        for name, value in instruction.pairs:
            self.envs[name] = self.expander.process_word(value, snapshot)


class DependencyResolver:
    """
    Resolves the files in a workspace that a Dockerfile's ADD and COPY
    instructions, and those of its base images' ONBUILD triggers, depend on.
    """
    def __init__(self,
                 base_images: Optional[BaseImageResolver] = None,
                 fs: Optional[FileSystem] = None,
                 settings: Optional[ResolverSettings] = None):
        """
        Initializes the resolver.

        :param base_images: Resolver for FROM images, sharing its cache across calls.
        :param fs: Filesystem for the Dockerfile, directories and the ignore file.
        :param settings: Ignore file name and lookup settings.
        """
        self.settings = settings or ResolverSettings()
        self.base_images = base_images or BaseImageResolver(settings=self.settings)
        self.fs = fs or LocalFileSystem()
        self.parser = DockerfileParser()

    def resolve(self, dockerfile_path: str, workspace: str) -> ResolutionResult:
        """
        Finds the full paths of all the source files the image depends on.

        :param dockerfile_path: Dockerfile path, relative to the workspace.
        :param workspace: The build context root.
        :return: Sorted paths plus warnings for base images that could not be inspected.
        :raises DockdepsError: For any fatal failure; no partial result is returned.
        """
        workspace = os.path.abspath(workspace)
        path = os.path.normpath(os.path.join(workspace, dockerfile_path))
        ast = self._parse_dockerfile(path)
        walk = _Walk(workspace, ShellWordExpander())
        warnings: List[ResolutionWarning] = []

        # First process onbuilds, if present
        for base, trigger in self._collect_onbuild_triggers(ast, warnings):
            try:
                instruction = self.parser.parse_instruction(trigger)
            except DockerfileParseError as e:
                raise OnbuildTriggerError(
                    f"parsing ONBUILD trigger {trigger!r} of base image {base}: {e}"
                ) from e
            walk.dispatch(instruction)

        for instruction in ast.instructions:
            walk.dispatch(instruction)

        deps = sorted(walk.deps)
        logger.info("Found dependencies for dockerfile %s: %s", path, deps)

        expanded = expand_paths(workspace, deps, self.fs)
        if path not in expanded:
            expanded.append(path)

        ignore_path = os.path.join(workspace, self.settings.ignore_file_name)
        paths = apply_docker_ignore(expanded, ignore_path, self.fs)
        return ResolutionResult(paths=paths, warnings=warnings)

    def _parse_dockerfile(self, path: str) -> DockerfileAST:
        try:
            with self.fs.open_text(path) as f:
                return self.parser.parse_stream(f)
        except (OSError, UnicodeDecodeError) as e:
            raise DockerfileOpenError(f"opening dockerfile {path}: {e}") from e

    def _collect_onbuild_triggers(self, ast: DockerfileAST, warnings: List[ResolutionWarning]):
        """
        Scans every FROM for ONBUILD triggers. A base image that cannot be
        inspected contributes none and is reported as a warning.
        """
        triggers = []
        for instruction in ast.of_kind(InstructionKind.FROM):
            base = instruction.image
            logger.debug("Checking base image %s for ONBUILD triggers.", base)
            try:
                onbuilds = self.base_images.onbuild_triggers(base)
            except ImageLookupError as e:
                logger.warning(
                    "Error processing base image for onbuild triggers: %s. "
                    "Dependencies may be incomplete.", e
                )
                warnings.append(ResolutionWarning(image=base, stage=WarningStage.ONBUILD, message=str(e)))
                continue
            triggers.extend((base, trigger) for trigger in onbuilds)
        return triggers


def get_dockerfile_dependencies(dockerfile_path: str, workspace: str,
                                settings: Optional[ResolverSettings] = None) -> List[str]:
    """
    Parses a Dockerfile and returns the full paths of all the source files
    the resulting image depends on, using the process-wide image cache.
    """
    return DependencyResolver(settings=settings).resolve(dockerfile_path, workspace).paths

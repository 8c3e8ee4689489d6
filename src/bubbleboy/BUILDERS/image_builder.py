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
Builders for turning rendered build specs into tagged Docker images.
"""
import io
import tarfile
from typing import Any, Callable, Optional

from docker.errors import DockerException
from pydantic import BaseModel

from ..MODELS.build_spec import BuildSpec
from ..REGISTRY.build_cache import BuildCache
from ..errors import BuildError


class BuildResult(BaseModel):
    """
    Outcome of an image build or cache lookup.
    """
    tag: str
    fingerprint: str
    cached: bool


def _print_progress(line: str) -> None:
    print(f"[build] {line}")


class ImageBuilder:
    """
    Packages a build spec into a build context and drives the Docker build,
    skipping it when the content-addressed tag already exists.
    """
    def __init__(self,
                 api: Any,
                 cache: Optional[BuildCache] = None,
                 on_progress: Optional[Callable[[str], None]] = None):
        """
        Initializes the ImageBuilder.

        :param api: Low-level Docker API client.
        :param cache: Build cache to consult. Defaults to one over the same client.
        :param on_progress: Called with every non-empty build output line.
        """
        self.api = api
        self.cache = cache or BuildCache(api)
        self.on_progress = on_progress or _print_progress

    def build(self, spec: BuildSpec, force_rebuild: bool = False) -> BuildResult:
        """
        Builds the image for a spec, or returns the cached one.

        :param spec: The rendered build spec.
        :param force_rebuild: Rebuild even when the tag already exists.
        :return: The resulting tag and whether it came from the cache.
        :raises BuildError: If the context cannot be assembled or the build fails.
        """
        fingerprint = self.cache.fingerprint(spec)
        tag = self.cache.tag_for(fingerprint)

        if not force_rebuild and self.cache.exists(fingerprint):
            print(f"Image cache hit for {tag}, skipping build")
            return BuildResult(tag=tag, fingerprint=fingerprint, cached=True)

        print(f"Building image {tag}...")
        context = self.create_build_context(spec)

        try:
            stream = self.api.build(
                fileobj=context,
                custom_context=True,
                tag=tag,
                rm=True,
                forcerm=True,
                nocache=force_rebuild,
                decode=True,
            )
            for chunk in stream:
                if chunk.get("error"):
                    raise BuildError(f"Docker build error: {chunk['error']}",
                                     details={"tag": tag})
                line = str(chunk.get("stream", "")).rstrip()
                if line:
                    self.on_progress(line)
        except DockerException as e:
            raise BuildError(f"Docker build stream error: {e}", details={"tag": tag}) from e

        print(f"Image build complete: {tag}")
        return BuildResult(tag=tag, fingerprint=fingerprint, cached=False)

    @staticmethod
    def create_build_context(spec: BuildSpec) -> io.BytesIO:
        """
        Creates an in-memory tar archive holding the Dockerfile and every
        context file at its declared path with its declared mode.

        :param spec: The rendered build spec.
        :return: A file object positioned at the start of the archive.
        """
        buf = io.BytesIO()
        try:
            with tarfile.open(fileobj=buf, mode="w") as tar:
                ImageBuilder._add_file(tar, "Dockerfile", spec.script, 0o644)
                for context_file in spec.context_files:
                    ImageBuilder._add_file(tar, context_file.path, context_file.content, context_file.mode)
        except (tarfile.TarError, OSError, UnicodeEncodeError) as e:
            raise BuildError(f"failed to assemble build context: {e}") from e
        buf.seek(0)
        return buf

    @staticmethod
    def _add_file(tar: tarfile.TarFile, path: str, content: str, mode: int) -> None:
        data = content.encode("utf-8")
        info = tarfile.TarInfo(path)
        info.size = len(data)
        info.mode = mode
        tar.addfile(info, io.BytesIO(data))

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
Content-addressed image cache.
Maps a rendered build spec to a deterministic image tag and checks whether
the local Docker image store already holds it.
"""

import hashlib
from typing import Any, List

from docker.errors import DockerException, NotFound

from ..MODELS.build_spec import BuildSpec
from ..UTILS.naming import PREFIX, image_tag
from ..errors import BuildError


class BuildCache:
    """
    Answers "has this build spec already been built?".

    Only the Dockerfile text is fingerprinted. Context files such as the
    entrypoint script do not take part, so editing one of them without
    touching the Dockerfile keeps hitting the cache.
    """

    def __init__(self, api: Any):
        """
        Initialize the build cache.

        Args:
            api: Low-level Docker API client (``docker.APIClient``).
        """
        self.api = api

    @staticmethod
    def fingerprint(spec: BuildSpec) -> str:
        """
        Compute the content fingerprint of a build spec.

        Args:
            spec: Rendered build spec.

        Returns:
            64-character lowercase SHA-256 hex digest of the Dockerfile text.
        """
        return hashlib.sha256(spec.script.encode("utf-8")).hexdigest()

    @staticmethod
    def tag_for(fingerprint: str) -> str:
        """Image tag for a fingerprint, e.g. ``bubble-boy:1a2b3c4d5e6f``."""
        return image_tag(fingerprint)

    def exists(self, fingerprint: str) -> bool:
        """
        Check whether an image tagged with this fingerprint exists locally.

        Args:
            fingerprint: Fingerprint from :meth:`fingerprint`.

        Returns:
            True if the image store has the tag.
        """
        tag = self.tag_for(fingerprint)
        try:
            images = self.api.images(name=tag)
        except DockerException as e:
            raise BuildError(f"failed to list Docker images: {e}") from e
        return bool(images)

    def list_tags(self) -> List[str]:
        """
        List every locally stored ``bubble-boy:*`` image tag.
        """
        try:
            images = self.api.images(name=PREFIX)
        except DockerException as e:
            raise BuildError(f"failed to list Docker images: {e}") from e

        tags = []
        for image in images or []:
            for tag in image.get("RepoTags") or []:
                if tag.startswith(f"{PREFIX}:"):
                    tags.append(tag)
        return tags

    def remove(self, tag: str) -> None:
        """
        Remove a cached image. A missing image counts as removed.

        Raises:
            BuildError: If Docker refuses, e.g. because a container still uses it.
        """
        try:
            self.api.remove_image(tag, force=True)
        except NotFound:
            return
        except DockerException as e:
            raise BuildError(f"failed to remove image {tag}: {e}") from e

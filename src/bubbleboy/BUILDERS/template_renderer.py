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
Renders the dev image Dockerfile by composing the base layer with runtime layers.
"""
from typing import List

from jinja2 import Template

from ..MODELS.build_spec import BuildSpec, ContextFile
from ..MODELS.config import Config
from ..RUNTIMES import NodeRuntime, Runtime, collect_runtimes

DOCKERFILE_TEMPLATE = """\
FROM ubuntu:24.04

ENV DEBIAN_FRONTEND=noninteractive
RUN apt-get update \\
    && apt-get install -y --no-install-recommends \\
        build-essential \\
        ca-certificates \\
        curl \\
        git \\
        gnupg \\
        software-properties-common \\
        sudo \\
        unzip \\
        wget \\
        zsh \\
    && rm -rf /var/lib/apt/lists/*

RUN mkdir -p /home/dev && chmod 777 /home/dev
ENV HOME=/home/dev
{% for layer in layers %}
{{ layer }}{% endfor %}
{%- if include_claude %}

# Claude Code
RUN npm install -g @anthropic-ai/claude-code
{%- endif %}
{%- if include_chief %}

# Chief
RUN curl -fsSL {{ chief_install_url }} | bash
ENV PATH="/home/dev/.local/bin:${PATH}"
{%- endif %}

COPY entrypoint.sh /usr/local/bin/entrypoint.sh
ENTRYPOINT ["/usr/local/bin/entrypoint.sh"]

WORKDIR /workspace
CMD ["sleep", "infinity"]
"""

ENTRYPOINT_SCRIPT = """\
#!/bin/bash
set -e

# Write Claude Code OAuth token to credentials file if present
if [ -n "${CLAUDE_CODE_OAUTH_TOKEN}" ]; then
    mkdir -p "${HOME}/.claude"
    cat > "${HOME}/.claude/.credentials.json" <<CREDENTIALS
{
  "claudeAiOauth": {
    "token": "${CLAUDE_CODE_OAUTH_TOKEN}"
  }
}
CREDENTIALS
    chmod 600 "${HOME}/.claude/.credentials.json"
    unset CLAUDE_CODE_OAUTH_TOKEN
fi

exec "$@"
"""

CLAUDE_NODE_VERSION = "22"
CHIEF_INSTALL_URL = "https://raw.githubusercontent.com/MiniCodeMonkey/chief/main/install.sh"


class TemplateRenderer:
    """
    Composes a BuildSpec from the resolved configuration.
    """

    def __init__(self):
        self.template = Template(DOCKERFILE_TEMPLATE, keep_trailing_newline=True)

    def runtimes(self, config: Config, include_claude: bool = True) -> List[Runtime]:
        """
        Runtimes that end up in the image. The Claude Code CLI is installed
        with npm, so Node.js is added when it was not selected.
        """
        runtimes = collect_runtimes(config)
        if include_claude and not any(rt.name == "node" for rt in runtimes):
            runtimes.insert(self._node_position(runtimes), NodeRuntime(CLAUDE_NODE_VERSION))
        return runtimes

    def render(self, config: Config, include_claude: bool = True, include_chief: bool = False) -> BuildSpec:
        """
        Renders the Dockerfile and its context files.

        :param config: The merged configuration.
        :param include_claude: Install the Claude Code CLI.
        :param include_chief: Install Chief. Chief drives Claude Code, so this
            implies ``include_claude``.
        :return: An immutable BuildSpec.
        :raises ConfigError: If a runtime version is unsupported.
        """
        include_claude = include_claude or include_chief
        layers = [rt.render() for rt in self.runtimes(config, include_claude)]
        script = self.template.render(
            layers=layers,
            include_claude=include_claude,
            include_chief=include_chief,
            chief_install_url=CHIEF_INSTALL_URL,
        )
        return BuildSpec(
            script=script,
            context_files=[ContextFile(path="entrypoint.sh", content=ENTRYPOINT_SCRIPT, mode=0o755)],
        )

    @staticmethod
    def _node_position(runtimes: List[Runtime]) -> int:
        # node follows php in layer order
        return 1 if runtimes and runtimes[0].name == "php" else 0

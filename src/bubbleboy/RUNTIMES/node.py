from .base import Runtime

NODE_TEMPLATE = """\
# Node.js {{ node_version }}
RUN curl -fsSL https://deb.nodesource.com/setup_{{ node_version }}.x | bash - \\
    && apt-get install -y --no-install-recommends nodejs \\
    && rm -rf /var/lib/apt/lists/*
"""


class NodeRuntime(Runtime):
    name = "node"
    label = "Node.js"
    template = NODE_TEMPLATE
    supported_versions = ["18", "20", "22"]

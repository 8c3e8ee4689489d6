from .base import Runtime

GO_TEMPLATE = """\
# Go {{ go_version }}
RUN ARCH="$(uname -m | sed -e 's/x86_64/amd64/' -e 's/aarch64/arm64/')" \\
    && curl -fsSL "https://go.dev/dl/go{{ go_version }}.linux-${ARCH}.tar.gz" | tar -C /usr/local -xz
ENV PATH=/usr/local/go/bin:$PATH
"""


class GoRuntime(Runtime):
    name = "go"
    label = "Go"
    template = GO_TEMPLATE
    supported_versions = ["1.22", "1.23"]

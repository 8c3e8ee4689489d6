from .base import Runtime

RUST_TEMPLATE = """\
# Rust (stable)
ENV RUSTUP_HOME=/usr/local/rustup \\
    CARGO_HOME=/usr/local/cargo \\
    PATH=/usr/local/cargo/bin:$PATH
RUN curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y --no-modify-path --profile minimal \\
    && chmod -R a+w $RUSTUP_HOME $CARGO_HOME
"""


class RustRuntime(Runtime):
    name = "rust"
    label = "Rust"
    template = RUST_TEMPLATE

    def __init__(self):
        super().__init__("stable")

    def context(self):
        return {}

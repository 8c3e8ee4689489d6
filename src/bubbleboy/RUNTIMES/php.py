from .base import Runtime

PHP_TEMPLATE = """\
# PHP {{ php_version }}
RUN add-apt-repository -y ppa:ondrej/php \\
    && apt-get update \\
    && apt-get install -y --no-install-recommends \\
        php{{ php_version }}-cli \\
        php{{ php_version }}-curl \\
        php{{ php_version }}-mbstring \\
        php{{ php_version }}-mysql \\
        php{{ php_version }}-pgsql \\
        php{{ php_version }}-redis \\
        php{{ php_version }}-xml \\
        php{{ php_version }}-zip \\
    && rm -rf /var/lib/apt/lists/*
RUN curl -fsSL https://getcomposer.org/installer | php -- --install-dir=/usr/local/bin --filename=composer
"""


class PhpRuntime(Runtime):
    name = "php"
    label = "PHP"
    template = PHP_TEMPLATE
    supported_versions = ["8.1", "8.2", "8.3"]

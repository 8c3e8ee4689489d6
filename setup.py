from setuptools import setup, find_namespace_packages

setup(
    name="bubbleboy",
    version="0.1.0",
    description="Ephemeral Docker dev containers with language runtimes and services",
    packages=find_namespace_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.4",
        "pyyaml>=6.0",
        "click>=8.0",
        "tenacity>=8.0",
        "python-dotenv>=1.0",
        "jinja2>=3.0",
        "docker>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bubble-boy=bubbleboy.CLI.main:main",
        ],
    },
)

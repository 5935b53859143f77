from setuptools import setup, find_packages
from pathlib import Path


def read_readme():
    this_directory = Path(__file__).parent
    readme_file = this_directory / 'README.md'
    if readme_file.exists():
        return readme_file.read_text(encoding='utf-8')
    return ""

def get_version():
    import re
    init_file = Path(__file__).parent / 'wq' / '__init__.py'
    if init_file.exists():
        content = init_file.read_text()
        match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', content)
        if match:
            return match.group(1)
    return "0.1.0"


setup(
    name="wq",
    version=get_version(),
    description="CQL preview tool: run CQL statements and render the results as Markdown.",
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=["wq", "wq.*"]),
    python_requires=">=3.11",
    install_requires=[
        "typer>=0.9",
        "pydantic>=2.0",
        "cassandra-driver>=3.29",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
    ],
    keywords="cql scylla cassandra preview markdown",
    entry_points={
        'console_scripts': [
            'wq=wq.cli.ctl:cli_app',
        ],
    },
)

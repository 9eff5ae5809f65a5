"""Setup script for teemiao."""

from pathlib import Path

from setuptools import find_packages, setup


def read_version():
    """Read __version__ from the package without importing it."""
    init_file = Path(__file__).parent / "src" / "teemiao" / "__init__.py"
    for line in init_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip('"\'')
    raise RuntimeError("Unable to find __version__")


setup(
    name="teemiao",
    version=read_version(),
    description="Convenient tools for building other applications",
    author="Qian Qiao",
    license="Apache-2.0",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "click>=8.0",
        "rich>=12.0",
        "PyYAML>=6.0",
        "pygit2>=1.12",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "teemiao=teemiao.cli:main",
        ],
    },
)

"""
Setup file.
"""

import os
import re

from setuptools import find_packages, setup

URL = "https://github.com/zackees/extbuild"
KEYWORDS = "browser extension build esbuild sass bundler watch hot-reload"
HERE = os.path.dirname(os.path.abspath(__file__))


def read_version() -> str:
    with open(os.path.join(HERE, "src", "extbuild", "__init__.py"), encoding="utf-8") as f:
        match = re.search(r"^__version__ = \"([^\"]+)\"", f.read(), re.MULTILINE)
    if match is None:
        raise RuntimeError("Unable to find __version__ in src/extbuild/__init__.py")
    return match.group(1)


if __name__ == "__main__":
    setup(
        name="extbuild",
        version=read_version(),
        description="Asset build orchestrator for browser extensions",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages("src"),
        install_requires=[
            "psutil",
            "tqdm",
            "watchdog",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "extbuild=extbuild.cli:main",
            ],
        },
        include_package_data=True)

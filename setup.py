#!/usr/bin/env python3

import os
import re

from setuptools import setup, find_packages


def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        return f.read()


def version():
    match = re.search(
        r"^__version__ = ['\"]([^'\"]*)['\"]", read("src/docmerge/__init__.py"), re.M
    )
    if not match:
        raise RuntimeError("failed to parse version")
    return match.group(1)


install_requires = [
    "aiosqlite >= 0.17.0",
    "wrapt >= 1.12.1",
]

extras_require = {
    "test": [
        "pytest >= 7.0",
        "pytest-asyncio >= 0.21",
    ],
}

classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Topic :: Database",
]

setup(
    name="docmerge",
    version=version(),
    description="Partial updates of JSON documents stored in a document database.",
    long_description=read("README.rst"),
    license="Mozilla Public License 2.0",
    classifiers=classifiers,
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">= 3.11",
    install_requires=install_requires,
    extras_require=extras_require,
    keywords="json document merge patch partial update",
)

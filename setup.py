# This file is part of guestmeta. See LICENSE file for license information.

# Distutils magic for guestmeta

import os
import sys
from glob import glob

import setuptools

# Python-path here is a little unpredictable as setup.py could be run
# from a directory other than the root of the repo, so ensure we can find
# our utils
sys.path.insert(0, os.path.dirname(os.path.realpath(__file__)))
# isort: off
from setup_utils import get_version, is_f, read_requires  # noqa: E402

# isort: on
del sys.path[0]

data_files = [
    ("share/doc/guestmeta/examples", [f for f in glob("config/*") if is_f(f)]),
]

setuptools.setup(
    name="guestmeta",
    version=get_version(),
    description="Hypervisor guestinfo metadata and userdata retrieval",
    license="Dual-licensed under GPLv3 or Apache 2.0",
    python_requires=">=3.8",
    packages=setuptools.find_packages(exclude=["tests.*", "tests"]),
    data_files=data_files,
    install_requires=read_requires(),
    extras_require={"test": read_requires("test-requirements.txt")},
    entry_points={
        "console_scripts": [
            "guestmeta = guestmeta.cmd.main:main",
        ],
    },
)

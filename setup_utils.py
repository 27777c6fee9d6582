import os
import re
from typing import List

TOP_DIR = os.path.dirname(os.path.realpath(__file__))


def is_f(p: str) -> bool:
    return os.path.isfile(p)


def get_version() -> str:
    with open(os.path.join(TOP_DIR, "guestmeta", "version.py")) as fp:
        match = re.search(r'^__VERSION__ = "([^"]+)"', fp.read(), re.M)
    if not match:
        raise RuntimeError("Unable to find __VERSION__ in version.py")
    return match.group(1)


def read_requires(fname: str = "requirements.txt") -> List[str]:
    requires = []
    with open(os.path.join(TOP_DIR, fname)) as fp:
        for line in fp:
            line = line.split("#", 1)[0].strip()
            if line:
                requires.append(line)
    return requires

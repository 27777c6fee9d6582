# This file is part of guestmeta. See LICENSE file for license information.

import base64
import gzip
import os
from unittest import mock  # noqa: F401

from guestmeta import util


def populate_dir(path, files):
    if not os.path.exists(path):
        os.makedirs(path)
    ret = []
    for (name, content) in files.items():
        p = os.path.sep.join([path, name])
        util.ensure_dir(os.path.dirname(p))
        with open(p, "wb") as fp:
            fp.write(util.encode_text(content))
        ret.append(p)

    return ret


def b64e(data):
    return base64.b64encode(util.encode_text(data))


def gzip_b64e(data):
    return base64.b64encode(gzip.compress(util.encode_text(data)))

# This file is part of guestmeta. See LICENSE file for license information.

import logging
import os
import tempfile
from base64 import b64decode, b64encode

from guestmeta import util

_DEF_PERMS = 0o644
LOG = logging.getLogger(__name__)


def b64d(source, strict=True):
    """base64 decode data

    Line breaks are ignored. With strict=True any other character outside
    the base64 alphabet raises binascii.Error instead of being skipped.

    :param source: a bytes or str to decode
    :return: the decoded bytes
    """
    source = util.encode_text(source)
    source = source.replace(b"\r", b"").replace(b"\n", b"")
    return b64decode(source, validate=strict)


def b64e(source):
    """base64 encode data

    :param source: a bytes or str to encode
    :return: base64 encoded str
    """
    return b64encode(util.encode_text(source)).decode("utf-8")


def write_file(filename, content, mode=_DEF_PERMS):
    """Write content to filename by way of a renamed temp file.

    content is bytes or str, the file ends up with permissions mode.
    """
    tf = None
    try:
        dirname = os.path.dirname(filename)
        util.ensure_dir(dirname)
        tf = tempfile.NamedTemporaryFile(dir=dirname, delete=False, mode="wb")
        LOG.debug(
            "Atomically writing to file %s (via temporary file %s) - [%o]"
            " %d bytes",
            filename,
            tf.name,
            mode,
            len(content),
        )
        tf.write(util.encode_text(content))
        tf.close()
        os.chmod(tf.name, mode)
        os.rename(tf.name, filename)
    except Exception as e:
        if tf is not None:
            tf.close()
            os.unlink(tf.name)
        raise e

# This file is part of guestmeta. See LICENSE file for license information.

import os
import stat

import pytest

from guestmeta import util

FAKE_RPCTOOL = """\
#!/bin/sh
# Minimal stand-in for vmware-rpctool: serves "info-get <key>" from files.
key="${1#info-get }"
if [ -f "%(store)s/$key" ]; then
    cat "%(store)s/$key"
    exit 0
fi
echo "No value found" >&2
exit 1
"""


class FakeGuestInfo:
    """A guestinfo store served by a fake vmware-rpctool on PATH."""

    def __init__(self, path):
        self.store = os.path.join(path, "guestinfo")
        self.bindir = os.path.join(path, "bin")
        self.rpctool = os.path.join(self.bindir, "vmware-rpctool")
        util.ensure_dir(self.store)
        util.ensure_dir(self.bindir)
        with open(self.rpctool, "w") as fp:
            fp.write(FAKE_RPCTOOL % {"store": self.store})
        os.chmod(self.rpctool, stat.S_IRWXU)

    def set(self, key, value, encoding=" "):
        """Set key as the guest tools report it, newline terminated.

        encoding=None leaves <key>.encoding unset.
        """
        with open(os.path.join(self.store, key), "wb") as fp:
            fp.write(util.encode_text(value) + b"\n")
        if encoding is not None:
            with open(os.path.join(self.store, key + ".encoding"), "w") as fp:
                fp.write(encoding + "\n")


@pytest.fixture
def fake_guestinfo(tmp_path, monkeypatch):
    guestinfo = FakeGuestInfo(str(tmp_path / "vmware"))
    monkeypatch.setenv(
        "PATH", guestinfo.bindir + os.pathsep + os.environ.get("PATH", "")
    )
    return guestinfo

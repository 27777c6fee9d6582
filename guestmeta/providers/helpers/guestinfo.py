# This file is part of guestmeta. See LICENSE file for license information.

"""Access to the VMware guestinfo key/value channel.

Values are read with the guest tools' rpc helper (``vmware-rpctool``), one
process per request. Each key ``<key>`` has a companion ``<key>.encoding``
entry naming how the value was encoded by whoever set it.
"""

import binascii
import logging

from guestmeta import atomic_helper, util
from guestmeta.subp import ProcessExecutionError, subp

LOG = logging.getLogger(__name__)

GUESTINFO_METADATA_KEY = "guestinfo.metadata"
GUESTINFO_USERDATA_KEY = "guestinfo.userdata"

ENCODING_SUFFIX = ".encoding"

# Encoding tags
ENC_NONE = " "
ENC_BLANK = ""
ENC_BASE64 = "base64"
ENC_GZIP_BASE64 = "gzip+base64"

VALID_ENCODINGS = (ENC_BLANK, ENC_NONE, ENC_BASE64, ENC_GZIP_BASE64)


class GuestInfoError(Exception):
    pass


class HelperNotFoundError(GuestInfoError):
    pass


class UnknownEncodingError(GuestInfoError):
    def __init__(self, encoding):
        self.encoding = encoding
        super().__init__("Unknown encoding %r" % encoding)


class DecodeError(GuestInfoError):
    pass


def decode(enc_type, data, key=None):
    """Return the bytes held in data once the enc_type encoding is undone.

    key only identifies the value in log messages.

    @raise UnknownEncodingError: enc_type is not one of VALID_ENCODINGS.
    @raise DecodeError: data is not valid for enc_type.
    """
    data = util.encode_text(data)
    LOG.debug("Getting encoded data for key=%s, enc=%r", key, enc_type)

    if enc_type in (ENC_NONE, ENC_BLANK):
        LOG.debug("Plain-text data %s", key)
        if data.endswith(b"\n"):
            return data[:-1]
        return data
    elif enc_type == ENC_BASE64:
        LOG.debug("Decoding %s format %s", enc_type, key)
        return _b64d(key, data)
    elif enc_type == ENC_GZIP_BASE64:
        LOG.debug("Decoding %s format %s", enc_type, key)
        compressed = _b64d(key, data)
        if not compressed:
            # GzipFile reads an empty buffer as an empty stream
            raise DecodeError("Empty gzip stream in %s" % key)
        try:
            return util.decomp_gzip(compressed, quiet=False, decode=False)
        except util.DecompressionError as e:
            LOG.debug("Decompressing gzip data of %s failed: %s", key, e)
            raise DecodeError(
                "Invalid gzip stream in %s: %s" % (key, e)
            ) from e
    raise UnknownEncodingError(enc_type)


def _b64d(key, data):
    try:
        return atomic_helper.b64d(data)
    except (binascii.Error, ValueError) as e:
        LOG.debug("Decoding base64 of %s failed: %s", key, e)
        raise DecodeError("Invalid base64 data in %s: %s" % (key, e)) from e


class GuestInfoClient:
    """Fetch and decode guestinfo values through an rpc helper binary."""

    def __init__(self, rpctool):
        if not rpctool:
            raise HelperNotFoundError("No guestinfo rpc helper available")
        self.rpctool = rpctool

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.rpctool)

    def get(self, key):
        """Return the decoded value of the guestinfo entry key.

        The value and its encoding are read with two separate helper runs;
        if either fails the ProcessExecutionError is raised and nothing is
        returned.
        """
        val = self.get_value(key)
        # Undecodable bytes cannot name a valid tag, decode() rejects them
        enc_type = util.decode_binary(
            self.get_value(key + ENCODING_SUFFIX), errors="replace"
        )
        if enc_type.endswith("\n"):
            enc_type = enc_type[:-1]
        return decode(enc_type, val, key)

    def get_value(self, key):
        """Return the raw helper output for key."""
        LOG.debug("Getting guestinfo value for key %s", key)
        try:
            stdout, _stderr = subp(
                [self.rpctool, "info-get " + key], decode=False
            )
        except ProcessExecutionError as error:
            if error.launch_failed:
                LOG.debug(
                    "Running %s for guestinfo key %s failed: %s",
                    self.rpctool,
                    key,
                    error.reason,
                )
            else:
                LOG.debug(
                    "Getting guestinfo key %s failed (exit code %s): %s",
                    key,
                    error.exit_code,
                    util.decode_binary(error.stderr, errors="replace"),
                )
            raise
        return stdout

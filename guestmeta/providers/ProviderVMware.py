# Provider for VMware guests
#
# This file is part of guestmeta. See LICENSE file for license information.

"""Provider for VMware guests

Metadata and userdata are read from the guestinfo keys
``guestinfo.metadata`` and ``guestinfo.userdata``. Either value may declare
its encoding through the companion key ``<key>.encoding``; valid encodings
are base64 and gzip+base64, and a single space means plain text.
"""

import logging

from guestmeta import providers
from guestmeta.providers.helpers.guestinfo import (
    GUESTINFO_METADATA_KEY,
    GUESTINFO_USERDATA_KEY,
    GuestInfoClient,
    GuestInfoError,
    HelperNotFoundError,
)
from guestmeta.subp import ProcessExecutionError, which

LOG = logging.getLogger(__name__)

DEFAULT_RPCTOOL = "vmware-rpctool"

# Values the guest tools report for a userdata key that was never populated,
# or that was cleared by writing an empty YAML document.
GUESTINFO_EMPTY_VAL = b" "
GUESTINFO_EMPTY_YAML_VAL = b"---"


class ProviderVMware(providers.Provider):

    provider_name = "VMware"

    def __init__(self, sys_cfg):
        providers.Provider.__init__(self, sys_cfg)
        self.rpctool = None

    def identify(self):
        return "VMWARE"

    def probe(self):
        """Return True when guestinfo holds real userdata for this guest.

        The rpc helper is installed on plenty of hosts that are not running
        on VMware, and a VMware guest without userdata has nothing for us,
        so only a populated userdata key counts.
        """
        try:
            rpctool = self._find_rpctool()
            if not rpctool:
                LOG.debug("%s: no rpctool discovered", self)
                return False
            LOG.debug("%s: discovered rpctool: %s", self, rpctool)
            self.rpctool = rpctool

            userdata = GuestInfoClient(self.rpctool).get(
                GUESTINFO_USERDATA_KEY
            )
        except Exception as e:
            LOG.debug("%s: probing %s failed: %s", self, self.rpctool, e)
            return False
        return bool(userdata) and userdata not in (
            GUESTINFO_EMPTY_VAL,
            GUESTINFO_EMPTY_YAML_VAL,
        )

    def extract(self):
        if not self.rpctool:
            self.rpctool = self._find_rpctool()
        if not self.rpctool:
            raise HelperNotFoundError("%s: no rpctool discovered" % self)
        client = GuestInfoClient(self.rpctool)

        # The metadata carries the host identity, this must not fail
        metadata = client.get(GUESTINFO_METADATA_KEY)
        self.write_metadata(metadata)

        try:
            userdata = client.get(GUESTINFO_USERDATA_KEY)
        except (ProcessExecutionError, GuestInfoError) as e:
            # Missing userdata is not an error
            LOG.info("%s: Failed to get user-data: %s", self, e)
            return None
        return userdata

    def _find_rpctool(self):
        helper = self.provider_cfg.get("helper") or DEFAULT_RPCTOOL
        if not isinstance(helper, str):
            LOG.warning("%s: ignoring invalid helper %r", self, helper)
            return None
        return which(helper)


def get_provider_list():
    return [ProviderVMware]

# This file is part of guestmeta. See LICENSE file for license information.

import abc
import importlib
import importlib.util
import logging
import os
from typing import List, Optional, Sequence, Tuple

from guestmeta import atomic_helper, settings, util

PROVIDER_PREFIX = "Provider"
PROVIDER_PKG_LIST = ("guestmeta.providers",)

LOG = logging.getLogger(__name__)


class ProviderNotFoundException(Exception):
    pass


class MetadataWriteError(IOError):
    pass


class Provider(metaclass=abc.ABCMeta):
    """A hypervisor or cloud that can hand boot configuration to a guest.

    The registry calls probe() on each configured provider and, for the
    first one that answers True, calls extract() exactly once.
    """

    # Provider name needs to be set by subclasses to determine which
    # 'provider' config key is loaded
    provider_name = "_undef"

    def __init__(self, sys_cfg):
        self.sys_cfg = sys_cfg or {}
        provider_cfg = util.get_cfg_by_path(
            self.sys_cfg, ("provider", self.provider_name), {}
        )
        if not isinstance(provider_cfg, dict):
            if provider_cfg is not None:
                LOG.warning(
                    "%s: ignoring provider config of type %s",
                    self.provider_name,
                    util.obj_name(provider_cfg),
                )
            provider_cfg = {}
        self.provider_cfg = provider_cfg
        self.config_path = self.sys_cfg.get(
            "config_path", settings.DEFAULT_CONFIG_PATH
        )

    def __str__(self):
        return self.identify()

    @abc.abstractmethod
    def identify(self) -> str:
        """Return a stable label naming this provider."""

    @abc.abstractmethod
    def probe(self) -> bool:
        """Return True if this provider is the running environment.

        Implementations must not raise.
        """

    @abc.abstractmethod
    def extract(self) -> Optional[bytes]:
        """Persist the metadata and return the userdata, if any."""

    def write_metadata(self, metadata: bytes):
        """Write metadata to <config_path>/metadata with mode 0644."""
        path = os.path.join(self.config_path, "metadata")
        try:
            atomic_helper.write_file(path, metadata, mode=0o644)
        except OSError as e:
            raise MetadataWriteError(
                "%s: Failed to write metadata to %s: %s" % (self, path, e)
            ) from e
        return path


def match_case_insensitive_module_name(mod_name: str) -> str:
    """Check the importable provider modules for a case-insensitive match."""
    if not mod_name.startswith(PROVIDER_PREFIX):
        mod_name = f"{PROVIDER_PREFIX}{mod_name}"
    for fname in os.listdir(os.path.dirname(__file__)):
        module, ext = os.path.splitext(fname)
        if ext == ".py" and module.lower() == mod_name.lower():
            return module
    return mod_name


def list_providers(
    cfg_list: Sequence[str], pkg_list: Sequence[str] = PROVIDER_PKG_LIST
) -> List[type]:
    """Return the provider classes named in cfg_list, in that order.

    For each name the "Provider<name>" module is looked up in pkg_list and
    its get_provider_list() is called.
    """
    src_list: List[type] = []
    LOG.debug(
        "Looking for providers in: %s, via packages %s", cfg_list, pkg_list
    )
    for name in cfg_list:
        mod_name = match_case_insensitive_module_name(name)
        found = False
        for pkg in pkg_list:
            full_path = ".".join(filter(None, [pkg, mod_name]))
            if not importlib.util.find_spec(full_path):
                continue
            mod = importlib.import_module(full_path)
            lister = getattr(mod, "get_provider_list", None)
            if lister is None:
                continue
            found = True
            for cls in lister():
                if cls not in src_list:
                    src_list.append(cls)
        if not found:
            LOG.error(
                "Could not import %s. Does the provider exist and "
                "is it importable?",
                mod_name,
            )
    return src_list


def find_provider(sys_cfg, cfg_list) -> Tuple[Provider, str]:
    """Return the first provider in cfg_list whose probe() succeeds."""
    provider_list = list_providers(cfg_list)
    names = [cls.__name__ for cls in provider_list]
    LOG.debug("Searching for provider in: %s", names)

    for name, cls in zip(names, provider_list):
        try:
            LOG.debug("Probing %s", name)
            provider = cls(sys_cfg)
            if provider.probe():
                LOG.info("Found provider %s", provider)
                return (provider, name)
        except Exception:
            util.logexc(LOG, "Probing %s failed", name)

    msg = "Did not find any provider, searched classes: (%s)" % ", ".join(
        names
    )
    raise ProviderNotFoundException(msg)

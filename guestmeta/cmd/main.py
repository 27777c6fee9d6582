#!/usr/bin/env python3

# This file is part of guestmeta. See LICENSE file for license information.

"""Find the provider this guest runs on and write out its boot data."""

import argparse
import logging
import os
import sys

from guestmeta import atomic_helper, log, providers, settings, util, version
from guestmeta.providers.helpers.guestinfo import GuestInfoError
from guestmeta.subp import ProcessExecutionError

NAME = "guestmeta"

LOG = logging.getLogger(__name__)


def get_parser(parser=None):
    """Build or extend an arg parser for the guestmeta utility.

    @param parser: Optional existing ArgumentParser instance which will be
        extended to support the args of this utility.

    @returns: ArgumentParser with proper argument configuration.
    """
    if not parser:
        parser = argparse.ArgumentParser(
            prog=NAME,
            description=(
                "Probe for the hypervisor provider and write its metadata"
                " and userdata to the config path"
            ),
        )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version="%(prog)s " + (version.version_string()),
        help="Show program's version number and exit.",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Show additional pre-action logging (default: %(default)s).",
        default=False,
    )
    parser.add_argument(
        "--file",
        "-f",
        type=str,
        default=None,
        help=(
            "Path to the system config file. Default is $%s or %s"
            % (settings.CFG_ENV_NAME, settings.GUESTMETA_CONFIG)
        ),
    )
    parser.add_argument(
        "--config-path",
        "-c",
        dest="config_path",
        type=str,
        default=None,
        help="Directory receiving the metadata and userdata files.",
    )
    parser.add_argument(
        "providers",
        nargs="*",
        help="Providers to probe, in order. Defaults to 'provider_list'.",
    )
    return parser


def read_cfg(cfg_file=None):
    """Return the builtin config merged under the system config files."""
    if not cfg_file:
        cfg_file = os.environ.get(
            settings.CFG_ENV_NAME, settings.GUESTMETA_CONFIG
        )
    return util.mergemanydict(
        [util.read_conf_with_confd(cfg_file), settings.CFG_BUILTIN]
    )


def handle_args(name, args):
    """Handle calls to the 'guestmeta' cli.

    @return: 0 on success or when no provider was found, 1 on error.
    """
    cfg = read_cfg(args.file)
    if args.providers:
        cfg["provider_list"] = args.providers
    if args.config_path:
        cfg["config_path"] = args.config_path

    if args.debug:
        log.setup_basic_logging(logging.DEBUG)
    else:
        log.setup_logging(cfg)

    try:
        provider, _name = providers.find_provider(cfg, cfg["provider_list"])
    except providers.ProviderNotFoundException as e:
        LOG.info("No metadata/userdata found: %s", e)
        return 0

    try:
        userdata = provider.extract()
    except (
        ProcessExecutionError,
        providers.MetadataWriteError,
        GuestInfoError,
    ) as e:
        util.logexc(LOG, "%s: Failed to extract metadata: %s", provider, e)
        return util.error("Failed to extract metadata from %s" % provider)

    if userdata:
        path = os.path.join(cfg["config_path"], "userdata")
        try:
            atomic_helper.write_file(path, userdata, mode=0o644)
        except OSError as e:
            util.logexc(LOG, "Failed to write userdata to %s: %s", path, e)
            return util.error("Failed to write userdata to %s" % path)
        LOG.info("%s: wrote userdata to %s", provider, path)
    else:
        LOG.info("%s: no userdata", provider)
    return 0


def main(sysv_args=None):
    log.configure_root_logger()
    parser = get_parser()
    args = parser.parse_args(args=sysv_args)
    try:
        return handle_args(NAME, args)
    finally:
        log.flush_loggers(LOG)


if __name__ == "__main__":
    sys.exit(main())

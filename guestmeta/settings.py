# This file is part of guestmeta. See LICENSE file for license information.

# Set and read for determining the system config file location
CFG_ENV_NAME = "GUESTMETA_CFG"

# This is expected to be a yaml formatted file
GUESTMETA_CONFIG = "/etc/guestmeta/guestmeta.cfg"

# Where decoded metadata and userdata are written for the boot pipeline
DEFAULT_CONFIG_PATH = "/run/config"

# What u get if no config is provided
CFG_BUILTIN = {
    "provider_list": [
        "VMware",
    ],
    "config_path": DEFAULT_CONFIG_PATH,
    "log_cfgs": [],
    "log_basic": True,
    "provider": {
        "VMware": {
            "helper": "vmware-rpctool",
        },
    },
}

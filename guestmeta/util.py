# This file is part of guestmeta. See LICENSE file for license information.

import copy as obj_copy
import gzip
import io
import logging
import os
import sys
from collections import deque
from typing import Deque, Dict, Mapping, Sequence, Union

import yaml

LOG = logging.getLogger(__name__)


class DecompressionError(Exception):
    pass


def decode_binary(
    blob: Union[str, bytes], encoding="utf-8", errors="strict"
) -> str:
    # Converts a binary type into a text type using given encoding.
    if isinstance(blob, str):
        return blob
    return blob.decode(encoding=encoding, errors=errors)


def encode_text(text: Union[str, bytes], encoding="utf-8") -> bytes:
    # Converts a text string into a binary type using given encoding.
    return text if isinstance(text, bytes) else text.encode(encoding=encoding)


def decomp_gzip(data, quiet=True, decode=True):
    """Gunzip data to completion.

    With quiet=True the input is handed back untouched when it is not a
    valid gzip stream, otherwise DecompressionError is raised.
    """
    try:
        with io.BytesIO(encode_text(data)) as buf, gzip.GzipFile(
            None, "rb", 1, buf
        ) as gh:
            if decode:
                return decode_binary(gh.read())
            else:
                return gh.read()
    except Exception as e:
        if quiet:
            return data
        else:
            raise DecompressionError(str(e)) from e


def obj_name(obj):
    if isinstance(obj, type):
        return obj.__name__
    return type(obj).__name__


def load_yaml(blob, default=None, allowed=(dict,)):
    loaded = default
    blob = decode_binary(blob)
    try:
        LOG.debug(
            "Attempting to load yaml from string "
            "of length %s with allowed root types %s",
            len(blob),
            allowed,
        )
        converted = yaml.safe_load(blob)
        if converted is None:
            LOG.debug("loaded blob returned None, returning default.")
            converted = default
        elif not isinstance(converted, allowed):
            # Yes this will just be caught, but thats ok for now...
            raise TypeError(
                "Yaml load allows %s root types, but got %s instead"
                % (allowed, obj_name(converted))
            )
        loaded = converted
    except (yaml.YAMLError, TypeError, ValueError) as e:
        msg = "Failed loading yaml blob"
        mark = getattr(e, "context_mark", None) or getattr(
            e, "problem_mark", None
        )
        if mark:
            msg += (
                '. Invalid format at line {line} column {col}: "{err}"'.format(
                    line=mark.line + 1, col=mark.column + 1, err=e
                )
            )
        else:
            msg += ". {err}".format(err=e)
        LOG.warning(msg)
    return loaded


def load_binary_file(fname: Union[str, os.PathLike], quiet=False) -> bytes:
    LOG.debug("Reading from %s (quiet=%s)", fname, quiet)
    try:
        with open(fname, "rb") as ifh:
            contents = ifh.read()
    except FileNotFoundError:
        if not quiet:
            raise
        contents = b""
    LOG.debug("Read %s bytes from %s", len(contents), fname)
    return contents


def load_text_file(fname: Union[str, os.PathLike], quiet=False) -> str:
    return decode_binary(load_binary_file(fname, quiet=quiet))


def read_conf(fname) -> Dict:
    """Read a yaml config and convert to dict"""
    try:
        config_file = load_text_file(fname)
    except FileNotFoundError:
        return {}
    return load_yaml(config_file, default={})


def read_conf_d(confd) -> dict:
    """Read configuration directory."""
    # Get reverse sorted list (later trumps newer)
    confs = sorted(os.listdir(confd), reverse=True)

    # Remove anything not ending in '.cfg'
    confs = [f for f in confs if f.endswith(".cfg")]

    # Remove anything not a file
    confs = [f for f in confs if os.path.isfile(os.path.join(confd, f))]

    # Load them all so that they can be merged
    cfgs = []
    for fn in confs:
        path = os.path.join(confd, fn)
        try:
            cfgs.append(read_conf(path))
        except PermissionError:
            LOG.warning(
                "REDACTED config part %s, insufficient permissions", path
            )
        except OSError as e:
            LOG.warning("Error accessing file %s: [%s]", path, e)

    return mergemanydict(cfgs)


def read_conf_with_confd(cfgfile) -> dict:
    """Read yaml file along with optional ".d" directory, return merged config

    Given a yaml file, load the file as a dictionary. Additionally, if there
    exists a same-named directory with .d extension, read all files from
    that directory in order and return the merged config.

    For example, this function can read both /etc/guestmeta/guestmeta.cfg
    and all files in /etc/guestmeta/guestmeta.cfg.d and merge all configs
    into a single dict.
    """
    cfgs: Deque[Dict] = deque()
    cfg: dict = {}
    try:
        cfg = read_conf(cfgfile)
    except PermissionError:
        LOG.warning(
            "REDACTED config part %s, insufficient permissions", cfgfile
        )
    except OSError as e:
        LOG.warning("Error accessing file %s: [%s]", cfgfile, e)
    else:
        cfgs.append(cfg)

    confd = f"{cfgfile}.d"
    if os.path.isdir(confd):
        # Conf.d settings override input configuration
        cfgs.appendleft(read_conf_d(confd))

    return mergemanydict(cfgs)


def mergemanydict(sources: Sequence[Mapping]) -> dict:
    """Merge multiple dicts, the first one given having the highest priority.

    Entries are recursively added, but no values get replaced if they
    already exist.

    mergemanydict([{"a": 1, "d": {"a": 1}}, {"a": 10, "d": {"f": 10}}])
    results in {"a": 1, "d": {"a": 1, "f": 10}}
    """
    merged_cfg: dict = {}
    for cfg in sources:
        if cfg:
            merged_cfg = _merge_missing(merged_cfg, cfg)
    return merged_cfg


def _merge_missing(base, cand):
    merged = obj_copy.deepcopy(base)
    for key, value in cand.items():
        if key not in merged:
            merged[key] = obj_copy.deepcopy(value)
        elif isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _merge_missing(merged[key], value)
    return merged


def get_cfg_by_path(yobj, keyp, default=None):
    """Return the value of the item at path C{keyp} in C{yobj}.

    example:
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'a/b/num') == 4
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'c/d') == None

    @param yobj: A dictionary.
    @param keyp: A path inside yobj.  it can be a '/' delimited string,
                 or an iterable.
    @param default: The default to return if the path does not exist.
    @return: The value of the item at keyp."
    is not found."""

    if isinstance(keyp, str):
        keyp = keyp.split("/")
    cur = yobj
    for tok in keyp:
        if not isinstance(cur, Mapping) or tok not in cur:
            return default
        cur = cur[tok]
    return cur


def logexc(log, msg, *args) -> None:
    # Log the message at warning and the traceback at debug level
    log.warning(msg, *args)
    log.debug(msg, exc_info=True, *args)


def ensure_dir(path, mode=None):
    if not os.path.isdir(path):
        os.makedirs(path)
    chmod(path, mode)


def chmod(path, mode):
    if path and mode:
        os.chmod(path, mode)


def error(msg, rc=1, fmt="Error:\n{}", sys_exit=False):
    r"""
    Print error to stderr and return or exit

    @param msg: message to print
    @param rc: return code (default: 1)
    @param fmt: format string for putting message in (default: 'Error:\n {}')
    @param sys_exit: exit when called (default: false)
    """
    print(fmt.format(msg), file=sys.stderr)
    if sys_exit:
        sys.exit(rc)
    return rc

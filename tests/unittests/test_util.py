# This file is part of guestmeta. See LICENSE file for license information.

"""Tests for guestmeta.util"""

import gzip
import logging

import pytest

from guestmeta import util
from tests.unittests.helpers import populate_dir


class TestDecompGzip:
    def test_decompress(self):
        assert "hi there" == util.decomp_gzip(gzip.compress(b"hi there"))

    def test_decompress_bytes(self):
        data = bytes(range(256))
        assert data == util.decomp_gzip(gzip.compress(data), decode=False)

    def test_quiet_returns_input(self):
        assert b"not gzip" == util.decomp_gzip(b"not gzip")

    def test_not_quiet_raises(self):
        with pytest.raises(util.DecompressionError):
            util.decomp_gzip(b"not gzip", quiet=False)


class TestLoadYaml:
    def test_dict(self):
        assert {"a": [1, 2]} == util.load_yaml("a: [1, 2]\n")

    def test_empty_document_returns_default(self):
        assert {"d": 1} == util.load_yaml("---\n", default={"d": 1})

    def test_wrong_root_type(self, caplog):
        assert {} == util.load_yaml("- a\n- b\n", default={})
        assert "Yaml load allows" in caplog.text

    def test_invalid_yaml(self, caplog):
        assert util.load_yaml("a: [1, 2\n") is None
        assert "Failed loading yaml blob. Invalid format at line" in (
            caplog.text
        )


class TestReadConf:
    def test_missing_file(self, tmp_path):
        assert {} == util.read_conf(str(tmp_path / "nope.cfg"))

    def test_read_conf_with_confd(self, tmp_path):
        cfgfile = str(tmp_path / "guestmeta.cfg")
        populate_dir(
            str(tmp_path),
            {
                "guestmeta.cfg": "config_path: /a\nprovider_list: [VMware]\n",
                "guestmeta.cfg.d/10-first.cfg": "config_path: /b\n",
                "guestmeta.cfg.d/20-second.cfg": (
                    "config_path: /c\nprovider: {VMware: {helper: x}}\n"
                ),
                "guestmeta.cfg.d/README": "config_path: /ignored\n",
            },
        )
        assert {
            "config_path": "/c",
            "provider_list": ["VMware"],
            "provider": {"VMware": {"helper": "x"}},
        } == util.read_conf_with_confd(cfgfile)

    def test_confd_without_main_file(self, tmp_path):
        populate_dir(
            str(tmp_path), {"guestmeta.cfg.d/90-x.cfg": "log_basic: false\n"}
        )
        assert {"log_basic": False} == util.read_conf_with_confd(
            str(tmp_path / "guestmeta.cfg")
        )


class TestMergeManyDict:
    def test_first_wins_and_nested_dicts_merge(self):
        a = {"a": 1, "c": [1, 2, 3], "d": {"a": 1, "b": 2}}
        b = {"a": 10, "c": [4], "d": {"a": 3, "f": 10}, "e": 20}
        assert {
            "a": 1,
            "c": [1, 2, 3],
            "d": {"a": 1, "b": 2, "f": 10},
            "e": 20,
        } == util.mergemanydict([a, b])

    def test_sources_are_not_modified(self):
        a = {"d": {"a": 1}}
        b = {"d": {"b": 2}}
        merged = util.mergemanydict([a, b])
        merged["d"]["c"] = 3
        assert {"d": {"a": 1}} == a
        assert {"d": {"b": 2}} == b


class TestGetCfgByPath:
    def test_path(self):
        cfg = {"a": {"b": {"num": 4}}}
        assert 4 == util.get_cfg_by_path(cfg, "a/b/num")
        assert 4 == util.get_cfg_by_path(cfg, ("a", "b", "num"))

    def test_default(self):
        assert "d" == util.get_cfg_by_path({"a": 1}, "a/b", "d")
        assert util.get_cfg_by_path({}, "c/d") is None


class TestLogexc:
    def test_warning_and_traceback(self, caplog):
        caplog.set_level(logging.DEBUG)
        log = logging.getLogger("guestmeta.test")
        try:
            raise ValueError("boom")
        except ValueError:
            util.logexc(log, "Failed %s", "thing")
        levels = [r.levelno for r in caplog.records]
        assert [logging.WARNING, logging.DEBUG] == levels
        assert caplog.records[1].exc_info is not None
        assert "Failed thing" == caplog.records[0].getMessage()


class TestEncoding:
    def test_decode_binary(self):
        assert "abc" == util.decode_binary(b"abc")
        assert "abc" == util.decode_binary("abc")

    def test_decode_binary_replace(self):
        assert "\ufffdbad" == util.decode_binary(b"\xffbad", errors="replace")
        with pytest.raises(UnicodeDecodeError):
            util.decode_binary(b"\xffbad")

    def test_encode_text(self):
        assert b"abc" == util.encode_text("abc")
        assert b"abc" == util.encode_text(b"abc")


def test_error(capsys):
    assert 3 == util.error("went wrong", rc=3)
    assert "Error:\nwent wrong\n" == capsys.readouterr().err

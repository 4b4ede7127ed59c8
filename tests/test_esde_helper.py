"""Tests for the ES-DE gamelist, info file and es_systems.xml writers."""

import os
import sys
from xml.etree import ElementTree as ET

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from services.esde_helper import (
    ES_SYSTEMS_FILE,
    GAMELIST_FILE,
    INFO_FILE,
    ensure_folder,
    update_gamelist,
    write_es_systems,
    write_info_file,
)


def test_ensure_folder(tmp_path):
    folder = ensure_folder(str(tmp_path))
    assert folder == os.path.join(str(tmp_path), "lttpr")
    assert os.path.isdir(folder)
    assert ensure_folder(str(tmp_path)) == folder


def test_update_gamelist_appends_entries(tmp_path):
    folder = str(tmp_path)
    path = update_gamelist(folder, "lttp_rand_aaa.sfc", "aaa", "https://alttpr.com/h/aaa")
    update_gamelist(folder, "lttp_rand_bbb.sfc", "bbb", "https://alttpr.com/h/bbb")

    assert path == os.path.join(folder, GAMELIST_FILE)
    root = ET.parse(path).getroot()
    assert root.tag == "gameList"
    games = root.findall("game")
    assert [g.findtext("path") for g in games] == ["./lttp_rand_aaa.sfc", "./lttp_rand_bbb.sfc"]
    assert games[1].findtext("name") == "ALttP Randomizer - bbb"
    assert "https://alttpr.com/h/bbb" in games[1].findtext("desc")

    with open(path, encoding="utf-8") as f:
        assert f.readline().startswith('<?xml version="1.0" encoding="UTF-8"?>')


def test_update_gamelist_replaces_unreadable_file(tmp_path):
    path = tmp_path / GAMELIST_FILE
    path.write_text("<gameList><game>")
    update_gamelist(str(tmp_path), "x.sfc", "x", "p")
    assert len(ET.parse(str(path)).getroot().findall("game")) == 1


def test_write_info_file_once(tmp_path):
    assert write_info_file(str(tmp_path)) is True
    with open(os.path.join(str(tmp_path), INFO_FILE), encoding="utf-8") as f:
        assert "<name>lttpr</name>" in f.read()
    assert write_info_file(str(tmp_path)) is False


def test_write_es_systems(tmp_path):
    folder = str(tmp_path / "custom_systems")
    assert write_es_systems(folder) is None
    assert write_es_systems(folder) == "already_configured"

    root = ET.parse(os.path.join(folder, ES_SYSTEMS_FILE)).getroot()
    systems = root.findall("system")
    assert len(systems) == 1
    assert systems[0].findtext("platform") == "snes"
    assert systems[0].find("command").get("label") == "RetroArch (snes9x)"


def test_write_es_systems_keeps_other_systems(tmp_path):
    path = tmp_path / ES_SYSTEMS_FILE
    path.write_text("<systemList><system><name>snes</name></system></systemList>")
    write_es_systems(str(tmp_path))
    names = [s.findtext("name") for s in ET.parse(str(path)).getroot().findall("system")]
    assert names == ["snes", "lttpr"]

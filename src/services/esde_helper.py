"""
ES-DE helper - files that let EmulationStation Desktop Edition pick up generated seeds.

Seeds go into an lttpr/ subfolder of the output directory, each with a
<game> entry in that folder's gamelist.xml. The folder also gets an
_info.txt with custom-system setup steps and an es_systems.xml snippet.
"""

import os
from datetime import datetime
from typing import Optional
from xml.dom import minidom
from xml.etree import ElementTree as ET

from constants import ESDE_FOLDER_NAME


GAMELIST_FILE = "gamelist.xml"
INFO_FILE = "_info.txt"
ES_SYSTEMS_FILE = "es_systems.xml"

SYSTEM_NAME = "lttpr"
SYSTEM_FULLNAME = "A Link to the Past Randomizer"
SYSTEM_COMMAND = "%EMULATOR_RETROARCH% -L %CORE_RETROARCH%/snes9x_libretro.so %ROM%"

INFO_TEXT = f"""ES-DE Custom System Setup for LTTP Randomizer
==============================================

To add this folder as a custom system in ES-DE:

1. Open your ES-DE custom_systems folder:
   - Windows: %USERPROFILE%\\.emulationstation\\custom_systems\\
   - Linux:   ~/.emulationstation/custom_systems/

2. Create or edit es_systems.xml and add:

<system>
    <name>{SYSTEM_NAME}</name>
    <fullname>{SYSTEM_FULLNAME}</fullname>
    <path>%ROMPATH%/{SYSTEM_NAME}</path>
    <extension>.sfc .SFC</extension>
    <command label="RetroArch (snes9x)">{SYSTEM_COMMAND}</command>
    <platform>snes</platform>
    <theme>snes</theme>
</system>

3. Move or symlink this {ESDE_FOLDER_NAME} folder into your ROMs root folder
4. Restart ES-DE - the system should appear using the SNES theme
"""


def _write_pretty_xml(root: ET.Element, path: str) -> None:
    """Write XML with nice formatting."""
    xml_str = ET.tostring(root, encoding="unicode")
    pretty_xml = minidom.parseString(xml_str).toprettyxml(indent="  ")

    # Remove extra blank lines and minidom's own declaration
    lines = [line for line in pretty_xml.split("\n") if line.strip()]
    if lines and lines[0].startswith("<?xml"):
        lines = lines[1:]
    final_xml = '<?xml version="1.0" encoding="UTF-8"?>\n' + "\n".join(lines) + "\n"

    with open(path, "w", encoding="utf-8") as f:
        f.write(final_xml)


def _load_root(path: str, tag: str) -> ET.Element:
    """Parse an existing XML file, or start over if it is missing or foreign."""
    if not os.path.exists(path):
        return ET.Element(tag)
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError:
        return ET.Element(tag)
    return root if root.tag == tag else ET.Element(tag)


def ensure_folder(output_dir: str) -> str:
    """Create the lttpr/ subfolder inside output_dir and return its path."""
    path = os.path.join(output_dir, ESDE_FOLDER_NAME)
    os.makedirs(path, exist_ok=True)
    return path


def update_gamelist(folder: str, rom_file_name: str, seed_hash: str, permalink: str) -> str:
    """Append a <game> entry for a new seed to folder/gamelist.xml.

    Returns the gamelist path.
    """
    gamelist_path = os.path.join(folder, GAMELIST_FILE)
    root = _load_root(gamelist_path, "gameList")

    game = ET.SubElement(root, "game")
    for tag, text in (
        ("path", f"./{rom_file_name}"),
        ("name", f"ALttP Randomizer - {seed_hash}"),
        ("desc", f"A Link to the Past Randomizer seed. Permalink: {permalink}"),
        ("rating", "0"),
        ("releasedate", datetime.now().strftime("%Y%m%dT%H%M%S")),
        ("developer", "alttpr.com"),
        ("publisher", "Community"),
        ("genre", "Action-Adventure"),
    ):
        ET.SubElement(game, tag).text = text

    _write_pretty_xml(root, gamelist_path)
    return gamelist_path


def write_info_file(folder: str) -> bool:
    """Write _info.txt unless it already exists. Returns True if written."""
    info_path = os.path.join(folder, INFO_FILE)
    if os.path.exists(info_path):
        return False
    with open(info_path, "w", encoding="utf-8") as f:
        f.write(INFO_TEXT)
    return True


def write_es_systems(folder: str) -> Optional[str]:
    """Add the lttpr system to folder/es_systems.xml.

    Returns None when written, "already_configured" if the system is there.
    """
    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, ES_SYSTEMS_FILE)
    root = _load_root(path, "systemList")

    for system in root.findall("system"):
        if system.findtext("name") == SYSTEM_NAME:
            return "already_configured"

    system = ET.SubElement(root, "system")
    ET.SubElement(system, "name").text = SYSTEM_NAME
    ET.SubElement(system, "fullname").text = SYSTEM_FULLNAME
    ET.SubElement(system, "path").text = f"%ROMPATH%/{SYSTEM_NAME}"
    ET.SubElement(system, "extension").text = ".sfc .SFC"
    command = ET.SubElement(system, "command", label="RetroArch (snes9x)")
    command.text = SYSTEM_COMMAND
    ET.SubElement(system, "platform").text = "snes"
    ET.SubElement(system, "theme").text = "snes"

    _write_pretty_xml(root, path)
    return None

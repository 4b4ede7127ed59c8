"""Tests for the seed generation orchestrator and local patching."""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from bps_builder import build_patch, source_read
from fake_http import FakeResponse, FakeSession
from services.alttpr_api.client import AlttprClient, ApiError
from services.alttpr_api.models import RandomizerSettings, SeedResult
from services.alttpr_api.sprites import RANDOM_ALL_SENTINEL
from services.lttp_patcher.cosmetics import ADDR_QUICK_SWAP, CosmeticSelection
from services.lttp_patcher.errors import IntegrityFailure
from services.lttp_patcher.rom_utils import MEGABYTE, SOURCE_ROM_SIZE, verify_checksum
from services.lttp_patcher.sprite import ROM_GFX_MAX_LENGTH, ROM_GFX_OFFSET
from services.seed_generator import SeedGenerator, output_filename, patch_from_files

IDENTITY_PATCH = build_patch(SOURCE_ROM_SIZE, SOURCE_ROM_SIZE, [source_read(SOURCE_ROM_SIZE)])


class StubClient:
    def __init__(self, seed=None, error=None):
        self.seed = seed
        self.error = error
        self.requests = []

    def generate(self, settings):
        self.requests.append(settings)
        if self.error is not None:
            raise self.error
        return self.seed


def _seed(bps=IDENTITY_PATCH):
    return SeedResult(
        hash="Xy12",
        permalink="https://alttpr.com/h/Xy12",
        bps_bytes=bps,
        dict_patches=[{"20": [0xAA]}],
        size_mb=2,
    )


@pytest.fixture
def rom_file(tmp_path):
    path = tmp_path / "alttp.sfc"
    path.write_bytes(bytes(range(256)) * (SOURCE_ROM_SIZE // 256))
    return str(path)


def test_output_filename():
    assert output_filename("Xy12") == "lttp_rand_Xy12.sfc"


def test_generate_writes_rom(tmp_path, rom_file):
    client = StubClient(seed=_seed())
    messages = []
    generator = SeedGenerator(client=client, on_status=messages.append)
    out_dir = str(tmp_path / "out")

    result = generator.generate(
        rom_file, out_dir, RandomizerSettings(),
        cosmetics=CosmeticSelection(quick_swap="on"),
    )

    assert result.success, result.error
    assert result.seed_hash == "Xy12"
    assert result.output_path == os.path.join(out_dir, "lttp_rand_Xy12.sfc")
    with open(result.output_path, "rb") as f:
        rom = f.read()
    assert len(rom) == 2 * MEGABYTE
    assert rom[20] == 0xAA
    assert rom[ADDR_QUICK_SWAP] == 0x01
    assert verify_checksum(rom)
    assert messages[-1] == "Done! Seed: Xy12"


def test_generate_esde_mode(tmp_path, rom_file):
    generator = SeedGenerator(client=StubClient(seed=_seed()))
    result = generator.generate(rom_file, str(tmp_path), RandomizerSettings(), esde_mode=True)

    folder = os.path.join(str(tmp_path), "lttpr")
    assert result.success
    assert os.path.dirname(result.output_path) == folder
    assert os.path.exists(os.path.join(folder, "gamelist.xml"))
    assert os.path.exists(os.path.join(folder, "_info.txt"))
    assert os.path.exists(os.path.join(folder, "es_systems.xml"))


def test_generate_with_sprite_file(tmp_path, rom_file):
    sprite_path = tmp_path / "custom.spr"
    sprite_path.write_bytes(b"\x3c" * ROM_GFX_MAX_LENGTH)
    generator = SeedGenerator(client=StubClient(seed=_seed()))

    result = generator.generate(
        rom_file, str(tmp_path / "out"), RandomizerSettings(), sprite_path=str(sprite_path)
    )

    assert result.success, result.error
    with open(result.output_path, "rb") as f:
        rom = f.read()
    assert rom[ROM_GFX_OFFSET:ROM_GFX_OFFSET + 4] == b"\x3c" * 4
    assert verify_checksum(rom)


def test_generate_bad_rom_size(tmp_path):
    rom = tmp_path / "bad.sfc"
    rom.write_bytes(bytes(1000))
    client = StubClient(seed=_seed())
    result = SeedGenerator(client=client).generate(
        str(rom), str(tmp_path / "out"), RandomizerSettings()
    )
    assert not result.success
    assert "1,000" in result.error
    assert client.requests == []
    assert not os.path.exists(str(tmp_path / "out"))


def test_generate_api_failure(tmp_path, rom_file):
    client = StubClient(error=ApiError("API error 500: Server Error", 500))
    result = SeedGenerator(client=client).generate(
        rom_file, str(tmp_path / "out"), RandomizerSettings()
    )
    assert not result.success
    assert "500" in result.error


def test_generate_malformed_seed_reply(tmp_path, rom_file):
    base = "https://alttpr.test"
    session = FakeSession({
        f"{base}/api/randomizer": FakeResponse(json_data={"hash": "H", "patch": [], "size": "two"}),
    })
    client = AlttprClient(base, session=session)
    result = SeedGenerator(client=client).generate(
        rom_file, str(tmp_path / "out"), RandomizerSettings()
    )
    assert not result.success
    assert "two" in result.error
    assert not os.path.exists(str(tmp_path / "out"))


def test_generate_corrupt_patch_writes_nothing(tmp_path, rom_file):
    corrupt = bytearray(IDENTITY_PATCH)
    corrupt[-1] ^= 0xFF
    result = SeedGenerator(client=StubClient(seed=_seed(bytes(corrupt)))).generate(
        rom_file, str(tmp_path / "out"), RandomizerSettings()
    )
    assert not result.success
    assert result.seed_hash == "Xy12"
    assert not os.path.exists(os.path.join(str(tmp_path / "out"), "lttp_rand_Xy12.sfc"))


def test_random_sprite_without_catalog_fails(tmp_path, rom_file):
    result = SeedGenerator(client=StubClient(seed=_seed())).generate(
        rom_file, str(tmp_path / "out"), RandomizerSettings(), sprite_path=RANDOM_ALL_SENTINEL
    )
    assert not result.success


# ---------------------------------------------------------------------------
# Local files
# ---------------------------------------------------------------------------


def test_patch_from_files_with_api_response(tmp_path, rom_file):
    bps_path = tmp_path / "base.bps"
    bps_path.write_bytes(IDENTITY_PATCH)
    response_path = tmp_path / "seed.json"
    response_path.write_text(json.dumps({"hash": "Xy12", "patch": [{"7": [1, 2]}], "size": 2}))
    out = str(tmp_path / "out" / "seed.sfc")

    path = patch_from_files(rom_file, str(bps_path), out, dict_patch_path=str(response_path))

    assert path == out
    with open(out, "rb") as f:
        rom = f.read()
    assert len(rom) == 2 * MEGABYTE
    assert rom[7:9] == b"\x01\x02"
    assert verify_checksum(rom)


def test_patch_from_files_with_patch_list(tmp_path, rom_file):
    bps_path = tmp_path / "base.bps"
    bps_path.write_bytes(IDENTITY_PATCH)
    dict_path = tmp_path / "dict.json"
    dict_path.write_text(json.dumps([{"3": [9]}]))
    out = str(tmp_path / "seed.sfc")

    patch_from_files(rom_file, str(bps_path), out, dict_patch_path=str(dict_path), size_mb=1)

    with open(out, "rb") as f:
        rom = f.read()
    assert len(rom) == MEGABYTE
    assert rom[3] == 9


def test_patch_from_files_corrupt_bps(tmp_path, rom_file):
    bps_path = tmp_path / "base.bps"
    bps_path.write_bytes(IDENTITY_PATCH[:-1] + bytes([IDENTITY_PATCH[-1] ^ 0xFF]))
    out = str(tmp_path / "seed.sfc")
    with pytest.raises(IntegrityFailure):
        patch_from_files(rom_file, str(bps_path), out)
    assert not os.path.exists(out)

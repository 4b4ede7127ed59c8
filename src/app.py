"""
LTTP Randomizer Generator - command line entry point.

Commands:
  generate  Generate a seed on alttpr.com and write the patched ROM
  apply     Patch a ROM from a local BPS file (and optional dictionary JSON)
  presets   List built-in and user presets, or save/delete a user preset
  sprites   List the sprite catalog, star a favorite or save a preview
"""

import argparse
import os
import sys
import traceback
from typing import List, Optional

from config.presets import all_presets, delete_preset, find_preset, save_preset
from config.settings import load_settings, save_settings, toggle_favorite
from constants import SPRITE_CACHE_DIR
from services.alttpr_api.client import AlttprClient, ApiError, create_session
from services.alttpr_api.models import RandomizerSettings
from services.alttpr_api.sprites import SpriteCatalog, safe_sprite_filename
from services.lttp_patcher.cosmetics import COSMETIC_OPTIONS, CosmeticSelection
from services.lttp_patcher.errors import PatchError
from services.seed_generator import SeedGenerator, patch_from_files
from utils.logging import init_log_file, log_error, update_log_file_path


def _choices(option: str) -> List[str]:
    return [value for _, value in COSMETIC_OPTIONS[option]]


def _add_cosmetic_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--heart-beep', dest="heart_beep_speed", choices=_choices("heart_beep_speed"))
    parser.add_argument('--heart-color', dest="heart_color", choices=_choices("heart_color"))
    parser.add_argument('--menu-speed', dest="menu_speed", choices=_choices("menu_speed"))
    parser.add_argument('--quick-swap', dest="quick_swap", choices=_choices("quick_swap"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lttpr-generator",
        description="Generate A Link to the Past Randomizer seeds from a stock ROM",
    )
    parser.add_argument('--log-dir', dest="log_dir", type=str, required=False,
                        help="Directory for error.log")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a seed on alttpr.com")
    gen.add_argument('-r', '--rom', dest="rom", type=str, required=False,
                     help="Stock ALttP JP 1.0 ROM (defaults to the last one used)")
    gen.add_argument('-o', '--output', dest="output", type=str, required=False,
                     help="Output folder (defaults to the last one used)")
    gen.add_argument('-p', '--preset', dest="preset", type=str, required=False)
    gen.add_argument('-s', '--sprite', dest="sprite", type=str, required=False,
                     help="Sprite file, __random_all__, __random_favorites__ or '' for default")
    gen.add_argument('--esde', dest="esde", action='store_true',
                     help="Write into an ES-DE lttpr/ folder and update gamelist.xml")
    _add_cosmetic_args(gen)

    apply = sub.add_parser("apply", help="Patch a ROM from local files")
    apply.add_argument('-r', '--rom', dest="rom", type=str, required=True)
    apply.add_argument('-b', '--bps', dest="bps", type=str, required=True)
    apply.add_argument('-o', '--output', dest="output", type=str, required=True)
    apply.add_argument('-d', '--dict-patch', dest="dict_patch", type=str, required=False)
    apply.add_argument('--size', dest="size_mb", type=int, default=2)
    apply.add_argument('-s', '--sprite', dest="sprite", type=str, required=False)
    _add_cosmetic_args(apply)

    presets = sub.add_parser("presets", help="List, save or delete presets")
    presets.add_argument('--save', dest="save", type=str, required=False,
                         help="Save the last used seed options under this name")
    presets.add_argument('--delete', dest="delete", type=str, required=False)

    sprites = sub.add_parser("sprites", help="List the sprite catalog")
    sprites.add_argument('--refresh', dest="refresh", action='store_true')
    sprites.add_argument('--favorites', dest="favorites_only", action='store_true')
    sprites.add_argument('--star', dest="star", type=str, required=False,
                         help="Add or remove a sprite from favorites")
    sprites.add_argument('--preview', dest="preview", type=str, required=False,
                         help="Save the preview image of this sprite as a PNG")
    sprites.add_argument('--preview-out', dest="preview_out", type=str, required=False,
                         help="Where to save the preview (default: <name>.png)")

    return parser


def _cosmetics_from_args(args, saved: Optional[dict] = None) -> CosmeticSelection:
    selection = CosmeticSelection.from_dict(saved or {})
    for name in ("heart_beep_speed", "heart_color", "menu_speed", "quick_swap"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(selection, name, value)
    return selection


def _generate(args, settings: dict) -> int:
    rom_path = args.rom or settings.get("rom_path")
    output_dir = args.output or settings.get("output_dir")
    if not rom_path:
        print("No ROM given. Use --rom.")
        return 2

    if args.preset:
        preset = find_preset(args.preset)
        if preset is None:
            print(f'Preset "{args.preset}" not found.')
            return 2
        seed_settings = preset.settings
    else:
        seed_settings = RandomizerSettings.from_dict(settings.get("randomizer") or {})

    cosmetics = _cosmetics_from_args(args, settings.get("customization"))
    sprite_path = args.sprite if args.sprite is not None else settings.get("sprite_path", "")

    session = create_session()
    generator = SeedGenerator(
        client=AlttprClient(session=session, on_status=print),
        catalog=SpriteCatalog(SPRITE_CACHE_DIR, session=session, on_status=print),
        on_status=print,
    )
    result = generator.generate(
        rom_path,
        output_dir,
        seed_settings,
        cosmetics=cosmetics,
        sprite_path=sprite_path,
        favorites=settings.get("sprite_favorites") or [],
        esde_mode=args.esde or settings.get("esde_mode", False),
    )

    settings.update({
        "rom_path": rom_path,
        "output_dir": output_dir,
        "sprite_path": sprite_path,
        "randomizer": seed_settings.to_dict(),
        "customization": cosmetics.to_dict(),
    })
    save_settings(settings)

    if not result.success:
        print(f"Generation failed: {result.error}")
        return 1
    print(f"Written: {result.output_path}")
    print(f"Permalink: {result.permalink}")
    return 0


def _apply(args) -> int:
    try:
        path = patch_from_files(
            args.rom,
            args.bps,
            args.output,
            dict_patch_path=args.dict_patch,
            size_mb=args.size_mb,
            cosmetics=_cosmetics_from_args(args),
            sprite_path=args.sprite,
        )
    except (PatchError, OSError, ValueError) as e:
        log_error(f"Local patch failed: {e}", type(e).__name__, traceback.format_exc())
        print(f"Patch failed: {e}")
        return 1
    print(f"Written: {path}")
    return 0


def _presets(args, settings: dict) -> int:
    if args.save:
        error = save_preset(args.save, RandomizerSettings.from_dict(settings.get("randomizer") or {}))
    elif args.delete:
        error = delete_preset(args.delete)
    else:
        for preset in all_presets():
            print(preset.name)
        return 0

    if error:
        print(error)
        return 1
    return 0


def _save_preview(catalog: SpriteCatalog, sprites, name: str, out_path: Optional[str]) -> int:
    entry = next((s for s in sprites if s.name == name), None)
    if entry is None:
        print(f"Unknown sprite: {name}")
        return 1
    image = catalog.load_preview(entry)
    if image is None:
        print(f"No preview available for {name}")
        return 1
    out_path = out_path or os.path.splitext(safe_sprite_filename(name))[0] + ".png"
    try:
        image.save(out_path, format="PNG")
    except OSError as e:
        log_error(f"Failed to save preview to {out_path}", type(e).__name__, traceback.format_exc())
        print(f"Could not save preview: {e}")
        return 1
    print(f"Preview saved to {out_path}")
    return 0


def _list_sprites(args, settings: dict) -> int:
    if args.star:
        starred = toggle_favorite(args.star)
        print(f"{args.star}: {'added to' if starred else 'removed from'} favorites")
        return 0

    catalog = SpriteCatalog(SPRITE_CACHE_DIR, on_status=print)
    try:
        sprites = catalog.fetch_sprite_list(force_refresh=args.refresh)
    except ApiError as e:
        print(str(e))
        return 1

    if args.preview:
        return _save_preview(catalog, sprites, args.preview, args.preview_out)

    favorites = set(settings.get("sprite_favorites") or [])
    for entry in sprites:
        if args.favorites_only and entry.name not in favorites:
            continue
        star = "*" if entry.name in favorites else " "
        print(f"{star} {entry.name} ({entry.author})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_dir:
        update_log_file_path(args.log_dir)
    init_log_file()
    settings = load_settings()

    if args.command == "generate":
        return _generate(args, settings)
    if args.command == "apply":
        return _apply(args)
    if args.command == "presets":
        return _presets(args, settings)
    if args.command == "sprites":
        return _list_sprites(args, settings)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

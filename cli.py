#!/usr/bin/env python3
"""
Missing Artwork CLI

Command-line interface for fixing missing Music.app album artwork
with generated AppleScript.

Usage:
    python cli.py <command> [options]

Commands:
    scan <path>              List albums whose tracks lack artwork
    script                   Generate the fix AppleScript (print, save or copy)
    fix                      Fix artwork now through the script engine
    run-script               Generate the fix AppleScript and run it once
    copy-image <source>      Copy an artwork image to the clipboard

Records come from --from-scan PATH, --records FILE.yaml, or --album/--artist.
"""

import argparse
import sys
from pathlib import Path
from typing import List

import yaml

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))


def _orchestrator(args):
    from orchestrator import ArtworkOrchestrator

    orch = ArtworkOrchestrator(args.config)
    if getattr(args, 'backend', None):
        orch.config.set('runtime.backend', args.backend)
    return orch


def load_records_file(path: str) -> List:
    """Read records from YAML: a list of {artist, album} or {records: [...]}"""
    from scripting.record import MissingArtwork

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get('records', [])
    if not isinstance(data, list):
        raise ValueError(f"Records file must contain a list: {path}")

    return [MissingArtwork.from_dict(entry) for entry in data]


def select_records(args, orch) -> List:
    """Collect records from the command line selection flags"""
    from scripting.record import ArtistAlbum, CompilationAlbum, FixMode

    records = []
    mode = FixMode(args.mode)

    if args.from_scan:
        records.extend(r for r, scanned_mode in orch.scan(args.from_scan) if scanned_mode is mode)
    if args.records:
        records.extend(load_records_file(args.records))
    if args.album:
        if args.artist:
            records.append(ArtistAlbum(args.artist, args.album))
        else:
            records.append(CompilationAlbum(args.album))

    return records


def cmd_scan(args):
    """Scan a folder for albums with missing artwork."""
    from agents.scanner import ScannerAgent
    from orchestrator.config import ConfigManager

    scanner = ScannerAgent(ConfigManager(args.config))
    albums = [a for a in scanner.scan(args.path) if a.mode is not None]

    print(f"\n=== Missing Artwork ===")
    for album in albums:
        print(f"[{album.mode.value:7}] {album.record.description} ({album.artwork_count}/{album.track_count} with artwork)")
    print(f"\nAlbums needing artwork: {len(albums)}")

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            yaml.safe_dump({'records': [a.to_dict() for a in albums]}, f, allow_unicode=True, sort_keys=False)
        print(f"Records saved to: {args.output}")


def cmd_script(args):
    """Generate the fix AppleScript."""
    from utilities.image_source import load_image

    orch = _orchestrator(args)
    records = select_records(args, orch)
    if not records:
        raise ValueError("No records selected")

    guard = False if args.no_guard else None

    if args.copy:
        image = load_image(args.image, orch.config) if args.image else None
        orch.copy_script(records, args.mode, image=image, guard_errors=guard)
        print(f"Copied AppleScript for {len(records)} album(s) to the clipboard")
        return

    script = orch.script_for(records, args.mode, guard_errors=guard)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(script)
        print(f"AppleScript for {len(records)} album(s) saved to: {args.output}")
    else:
        sys.stdout.write(script)


def cmd_fix(args):
    """Fix artwork now through the script engine."""
    from orchestrator.errors import LoadScriptError
    from utilities.image_source import load_image

    orch = _orchestrator(args)
    records = select_records(args, orch)
    if not records:
        raise ValueError("No records selected")

    images = {}
    if args.image:
        image = load_image(args.image, orch.config)
        images = {record: image for record in records}

    try:
        results = orch.fix(records, args.mode, images=images, guard_errors=False if args.no_guard else None)
    except LoadScriptError as e:
        print(f"Error: {e.description}", file=sys.stderr)
        print(e.recovery_suggestion, file=sys.stderr)
        return 1

    print(f"\n=== Fix Results ===")
    print(f"Records: {results['total']}")
    print(f"Fixed: {results['success']}")
    print(f"Failed: {results['failed']}")
    if results['not_processed']:
        print(f"Not processed: {results['not_processed']}")

    for item in results['items']:
        error = item.get('error')
        if error is not None and hasattr(error, 'recovery_suggestion'):
            print(f"  {error.description}", file=sys.stderr)
            print(f"  {error.recovery_suggestion}", file=sys.stderr)

    return 0 if results['failed'] == 0 else 1


def cmd_run_script(args):
    """Generate the fix AppleScript and run it once."""
    orch = _orchestrator(args)
    records = select_records(args, orch)
    if not records:
        raise ValueError("No records selected")

    result = orch.run_script(records, args.mode, guard_errors=False if args.no_guard else None)
    if result['status'] == 'error':
        print(f"Error: {result['error'].description}", file=sys.stderr)
        return 1

    print(f"AppleScript finished ({result['status']}) for {result['records']} album(s)")
    return 0 if result['status'] == 'success' else 1


def cmd_copy_image(args):
    """Copy an artwork image to the clipboard."""
    from utilities.image_source import load_image

    orch = _orchestrator(args)
    orch.copy_image(load_image(args.source, orch.config))
    print("Copied artwork image to the clipboard")


def _add_record_args(parser):
    parser.add_argument('--from-scan', metavar='PATH', help='Scan PATH and use albums needing --mode')
    parser.add_argument('--records', metavar='FILE', help='YAML file of records (artist, album)')
    parser.add_argument('--album', help='Album title')
    parser.add_argument('--artist', help='Album artist (omit for compilations)')
    parser.add_argument('--mode', choices=['full', 'partial'], default='partial',
                        help='full: image from clipboard/--image, partial: image from tracks that have it')
    parser.add_argument('--no-guard', action='store_true',
                        help='Stop at the first failing album instead of logging and continuing')


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='missing-art',
        description='Missing Music.app Artwork CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', default='missing-art.yaml', help='Configuration file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # scan command
    scan_parser = subparsers.add_parser('scan', help='List albums with missing artwork')
    scan_parser.add_argument('path', help='Folder to scan')
    scan_parser.add_argument('--output', help='Save records to a YAML file')
    scan_parser.set_defaults(func=cmd_scan)

    # script command
    script_parser = subparsers.add_parser('script', help='Generate the fix AppleScript')
    _add_record_args(script_parser)
    script_parser.add_argument('--output', help='Save the script to a file')
    script_parser.add_argument('--copy', action='store_true', help='Copy the script to the clipboard')
    script_parser.add_argument('--image', help='Image file/URL copied along with the script (full mode)')
    script_parser.set_defaults(func=cmd_script)

    # fix command
    fix_parser = subparsers.add_parser('fix', help='Fix artwork now')
    _add_record_args(fix_parser)
    fix_parser.add_argument('--image', help='Image file/URL/audio file to use (full mode)')
    fix_parser.add_argument('--backend', choices=['osascript', 'appkit'], help='Runtime backend override')
    fix_parser.set_defaults(func=cmd_fix)

    # run-script command
    run_parser = subparsers.add_parser('run-script', help='Generate the fix AppleScript and run it')
    _add_record_args(run_parser)
    run_parser.add_argument('--backend', choices=['osascript', 'appkit'], help='Runtime backend override')
    run_parser.set_defaults(func=cmd_run_script)

    # copy-image command
    image_parser = subparsers.add_parser('copy-image', help='Copy an artwork image to the clipboard')
    image_parser.add_argument('source', help='Image file, URL or audio file with artwork')
    image_parser.set_defaults(func=cmd_copy_image)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return args.func(args) or 0
    except KeyboardInterrupt:
        print("\nOperation cancelled.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

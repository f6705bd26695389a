import argparse
import logging
import sys
from pathlib import Path
from xml.parsers.expat import ExpatError

import anyio
from httpx import HTTPError

from config import DATA_DIR, MAP_DATA_DIR, NAME, VERSION
from db import get_engine
from exceptions import StoreError
from models.bbox import BBox
from openstreetmap import OpenStreetMap
from osm_reader import parse_osm
from services.import_service import ImportService
from services.store_service import StoreService


def _list_map_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file())


def _choose_map_file(directory: Path) -> Path | None:
    files = _list_map_files(directory)
    if not files:
        print(f'No map files found in {directory}')
        return None

    print('Available map files:')
    for index, path in enumerate(files, 1):
        print(f'{index}: {path.name}')

    choice = input('Please enter the number of the file you want to choose: ').strip()
    if choice.isdigit() and 1 <= int(choice) <= len(files):
        return files[int(choice) - 1]

    print('Invalid selection.')
    return None


async def _cmd_init(_: argparse.Namespace) -> int:
    await StoreService.create_tables()
    logging.info('Tables created')
    return 0


async def _cmd_import(args: argparse.Namespace) -> int:
    path = args.file or _choose_map_file(MAP_DATA_DIR)
    if path is None:
        return 1

    await StoreService.create_tables()
    stats = await ImportService.import_file(
        path,
        skip_existing=args.skip_existing,
        drop_dangling=args.drop_dangling,
    )
    print(f'Imported {stats.nodes} nodes, {stats.ways} ways and {stats.relations} relations')
    return 0


async def _cmd_download(args: argparse.Namespace) -> int:
    bbox = BBox.from_tuple((args.min_lon, args.min_lat, args.max_lon, args.max_lat))
    xml = await OpenStreetMap().get_map(bbox)
    data = parse_osm(xml)

    await StoreService.create_tables()
    # map responses include relations whose members lie outside the box
    stats = await ImportService.import_data(data, skip_existing=True, drop_dangling=True)
    print(f'Imported {stats.nodes} nodes, {stats.ways} ways and {stats.relations} relations')
    return 0


async def _cmd_fetch(args: argparse.Namespace) -> int:
    xml = await OpenStreetMap().get_full(args.kind, args.id)
    if xml is None:
        print(f'{args.kind}/{args.id} does not exist or was deleted')
        return 1

    await StoreService.create_tables()
    # members of nested relations are not part of the response
    stats = await ImportService.import_data(parse_osm(xml), skip_existing=True, drop_dangling=True)
    print(f'Imported {stats.nodes} nodes, {stats.ways} ways and {stats.relations} relations')
    return 0


async def _cmd_stats(_: argparse.Namespace) -> int:
    for table_name, count in (await StoreService.counts()).items():
        print(f'{table_name}: {count}')
    return 0


async def _cmd_check(_: argparse.Namespace) -> int:
    issues = await StoreService.check_integrity()
    for issue in issues:
        print(f'{issue.table} {issue.key}: {issue.message}')
    print(f'{len(issues)} issues found')
    return 1 if issues else 0


async def _cmd_clear(_: argparse.Namespace) -> int:
    await StoreService.clear_all()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=NAME, description='OpenStreetMap relational store')
    parser.add_argument('--version', action='version', version=f'{NAME} {VERSION}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    init_parser = subparsers.add_parser('init', help='Create the tables')
    init_parser.set_defaults(func=_cmd_init)

    import_parser = subparsers.add_parser('import', help='Import an .osm file')
    import_parser.add_argument(
        'file',
        nargs='?',
        type=Path,
        help=f'.osm, .osm.gz or .osm.bz2 file; chosen interactively from {MAP_DATA_DIR} when omitted',
    )
    import_parser.add_argument('--skip-existing', action='store_true', help='Ignore elements already stored')
    import_parser.add_argument(
        '--drop-dangling',
        action='store_true',
        help='Drop way nodes and members referencing missing elements',
    )
    import_parser.set_defaults(func=_cmd_import)

    download_parser = subparsers.add_parser('download', help='Download and import an area from the OSM API')
    for name in ('min_lon', 'min_lat', 'max_lon', 'max_lat'):
        download_parser.add_argument(name, type=float)
    download_parser.set_defaults(func=_cmd_download)

    fetch_parser = subparsers.add_parser('fetch', help='Download and import one element with everything it references')
    fetch_parser.add_argument('kind', choices=('node', 'way', 'relation'))
    fetch_parser.add_argument('id', type=int)
    fetch_parser.set_defaults(func=_cmd_fetch)

    stats_parser = subparsers.add_parser('stats', help='Print row counts')
    stats_parser.set_defaults(func=_cmd_stats)

    check_parser = subparsers.add_parser('check', help='Report dangling references')
    check_parser.set_defaults(func=_cmd_check)

    clear_parser = subparsers.add_parser('clear', help='Delete all rows')
    clear_parser.set_defaults(func=_cmd_clear)

    return parser


async def _run(args: argparse.Namespace) -> int:
    try:
        return await args.func(args)
    finally:
        await get_engine().dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    DATA_DIR.mkdir(exist_ok=True)

    try:
        return anyio.run(_run, args)
    except (StoreError, HTTPError, OSError, ValueError, ExpatError) as e:
        logging.error('%s: %s', type(e).__name__, e)
        return 2


if __name__ == '__main__':
    sys.exit(main())

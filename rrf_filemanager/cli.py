import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

from .client import RRFFileManager
from .config import settings
from .logger import log_exception, logger
from .types import FileList


def _format_listing(listing: FileList, depth: int = 0) -> list[str]:
    lines = []
    indent = "  " * depth
    subdirs = {subdir.dir: subdir for subdir in listing.subdirs}

    for entry in listing.files:
        modified = entry.date.strftime("%Y-%m-%d %H:%M:%S") if entry.date else "-"
        if entry.is_dir:
            lines.append(f"{indent}{modified}  {'<DIR>':>10}  {entry.name}/")
            subdir = subdirs.get(listing.path_of(entry))
            if subdir is not None:
                lines.extend(_format_listing(subdir, depth + 1))
        else:
            lines.append(f"{indent}{modified}  {entry.size:>10}  {entry.name}")
    return lines


@asynccontextmanager
async def _session(args: argparse.Namespace) -> AsyncIterator[RRFFileManager]:
    password = args.password if args.password is not None else settings.password
    async with RRFFileManager.from_settings(
        host=args.host, port=args.port, debug=args.debug or None
    ) as client:
        await client.connect(password)
        yield client


@log_exception("ls {args.path}", default_return=1)
async def cmd_ls(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        listing = await client.file_list(args.path, recursive=args.recursive)
    for line in _format_listing(listing):
        print(line)
    return 0


@log_exception("info {args.path}", default_return=1)
async def cmd_info(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        info = await client.file_info(args.path)
    for key, value in info.model_dump(exclude={"err"}, exclude_none=True).items():
        print(f"{key}: {value}")
    return 0


@log_exception("mkdir {args.path}", default_return=1)
async def cmd_mkdir(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        await client.mkdir(args.path)
    return 0


@log_exception("mv {args.old} {args.new}", default_return=1)
async def cmd_mv(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        if args.overwrite:
            await client.move_overwrite(args.old, args.new)
        else:
            await client.move(args.old, args.new)
    return 0


@log_exception("rm {args.path}", default_return=1)
async def cmd_rm(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        if args.recursive:
            await client.delete_recursive(args.path)
        else:
            await client.delete(args.path)
    return 0


@log_exception("get {args.remote}", default_return=1)
async def cmd_get(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        size, duration = await client.download_to(args.remote, args.local)
    logger.info(f"Downloaded {size} bytes from {args.remote} in {duration}")
    return 0


@log_exception("put {args.local}", default_return=1)
async def cmd_put(args: argparse.Namespace) -> int:
    async with _session(args) as client:
        duration = await client.upload(args.remote, Path(args.local))
    logger.info(f"Uploaded {args.local} to {args.remote} in {duration}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rrf-files",
        description="Manage the SD card of a RepRapFirmware machine",
    )
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--password", type=str, default=None)
    parser.add_argument("--debug", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls_parser = subparsers.add_parser("ls", help="list a directory")
    ls_parser.add_argument("path", type=str)
    ls_parser.add_argument("-r", "--recursive", action="store_true")
    ls_parser.set_defaults(func=cmd_ls)

    info_parser = subparsers.add_parser("info", help="show file information")
    info_parser.add_argument("path", type=str)
    info_parser.set_defaults(func=cmd_info)

    mkdir_parser = subparsers.add_parser("mkdir", help="create a directory")
    mkdir_parser.add_argument("path", type=str)
    mkdir_parser.set_defaults(func=cmd_mkdir)

    mv_parser = subparsers.add_parser("mv", help="move or rename")
    mv_parser.add_argument("old", type=str)
    mv_parser.add_argument("new", type=str)
    mv_parser.add_argument("--overwrite", action="store_true")
    mv_parser.set_defaults(func=cmd_mv)

    rm_parser = subparsers.add_parser("rm", help="delete a file or directory")
    rm_parser.add_argument("path", type=str)
    rm_parser.add_argument("-r", "--recursive", action="store_true")
    rm_parser.set_defaults(func=cmd_rm)

    get_parser = subparsers.add_parser("get", help="download a file")
    get_parser.add_argument("remote", type=str)
    get_parser.add_argument("local", type=str)
    get_parser.set_defaults(func=cmd_get)

    put_parser = subparsers.add_parser("put", help="upload a file")
    put_parser.add_argument("local", type=str)
    put_parser.add_argument("remote", type=str)
    put_parser.set_defaults(func=cmd_put)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        logger.setLevel(logging.DEBUG)
    return asyncio.run(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())

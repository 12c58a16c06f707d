"""
Command-line interface for oss-uploader.

Usage:
    oss-uploader upload ./dist --target static/ --exclude "**/*.map"
    oss-uploader upload logo.png favicon.ico --no-content-hash
    oss-uploader list static/ --directories
    oss-uploader delete static/app.1a2b3c4d.js
    oss-uploader init --output oss.config.py
    oss-uploader info
    oss-uploader browse
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from oss_uploader import __version__
from oss_uploader.browser import browse_directories
from oss_uploader.client import OSSClient, RemoteStorageError
from oss_uploader.uploader import OSSUploader, UploadOptions, UploadResult
from oss_uploader.utils.config_loader import DEFAULT_SAMPLE_PATH, create_sample_config, load_config
from oss_uploader.utils.formatting import format_bytes
from oss_uploader.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Errors reported as a one-line message instead of a traceback
EXPECTED_ERRORS = (
    FileNotFoundError,
    FileExistsError,
    IsADirectoryError,
    ValueError,
    RemoteStorageError,
)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog="oss-uploader",
        description="Upload files and directories to Aliyun OSS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload a build directory with content-hashed names
  %(prog)s upload ./dist --target static/

  # Upload a few files as-is, refusing to replace existing objects
  %(prog)s upload logo.png robots.txt --no-content-hash --no-overwrite

  # Create a starter config
  %(prog)s init
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING, DEBUG with --verbose)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    # upload
    upload = subparsers.add_parser("upload", help="Upload files or directories to OSS")
    upload.add_argument("sources", nargs="+", help="Local file(s) and/or directories")
    upload.add_argument("-t", "--target", default="", help="Target path in the bucket")
    _add_config_argument(upload)
    upload.add_argument(
        "-r",
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Upload directories recursively (default: on)",
    )
    upload.add_argument(
        "-o",
        "--overwrite",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Overwrite existing files (default: on)",
    )
    upload.add_argument("-i", "--include", nargs="+", metavar="PATTERN", help="Include file patterns (glob)")
    upload.add_argument("-e", "--exclude", nargs="+", metavar="PATTERN", help="Exclude file patterns (glob)")
    upload.add_argument("-v", "--verbose", action="store_true", help="Show one line per file")
    upload.add_argument(
        "-m",
        "--mapping",
        nargs="?",
        const=True,
        default=True,
        metavar="PATH",
        help="Generate upload mapping file (default: .oss-uploader-mapping.json)",
    )
    upload.add_argument(
        "--no-mapping",
        dest="mapping",
        action="store_const",
        const=False,
        help="Do not generate upload mapping file",
    )
    upload.add_argument(
        "--content-hash",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Add a content hash to uploaded file names (default: on)",
    )
    upload.set_defaults(handler=cmd_upload)

    # list
    list_cmd = subparsers.add_parser("list", help="List files in the bucket")
    list_cmd.add_argument("prefix", nargs="?", default="", help="Key prefix to list")
    _add_config_argument(list_cmd)
    list_cmd.add_argument(
        "-m", "--max-keys", type=int, default=1000, help="Maximum number of files to list (default: 1000)"
    )
    list_cmd.add_argument(
        "-d", "--directories", action="store_true", help="Only list directories (common prefixes)"
    )
    list_cmd.set_defaults(handler=cmd_list)

    # delete
    delete = subparsers.add_parser("delete", help="Delete a file from the bucket")
    delete.add_argument("path", help="Object key to delete")
    _add_config_argument(delete)
    delete.set_defaults(handler=cmd_delete)

    # init
    init = subparsers.add_parser("init", help="Create a sample configuration file")
    init.add_argument(
        "-o", "--output", default=DEFAULT_SAMPLE_PATH, help=f"Output path (default: {DEFAULT_SAMPLE_PATH})"
    )
    init.add_argument(
        "-t", "--type", choices=["json", "py"], help="Config type (default: from the output extension)"
    )
    init.set_defaults(handler=cmd_init)

    # info
    info = subparsers.add_parser("info", help="Show bucket information")
    _add_config_argument(info)
    info.set_defaults(handler=cmd_info)

    # browse
    browse = subparsers.add_parser("browse", help="Browse directories and pick an upload target")
    browse.add_argument("prefix", nargs="?", default="", help="Prefix to start from")
    _add_config_argument(browse)
    browse.set_defaults(handler=cmd_browse)

    return parser


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", help="Path to configuration file")


def print_summary(results: List[UploadResult]) -> int:
    """Print the upload summary; return the exit code."""
    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]
    total_size = sum(r.size or 0 for r in successful)

    print("\n📊 Upload Summary:")
    print(f"  ✅ Successful: {len(successful)}")
    if failed:
        print(f"  ❌ Failed: {len(failed)}")
    print(f"  📦 Total size: {format_bytes(total_size)}")

    if failed:
        print("\n❌ Failed files:")
        for result in failed:
            print(f"  • {result.local_path}: {result.error}")
        return 1

    print("\n✨ Upload completed successfully!")
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    print("🚀 Starting upload process...\n")

    config = load_config(args.config)
    if args.verbose:
        print(f"Config loaded: Region={config.region}, Bucket={config.bucket}\n")

    uploader = OSSUploader(config)
    options = UploadOptions(
        source=str(Path(args.sources[0]).resolve()),
        target=args.target,
        recursive=args.recursive,
        overwrite=args.overwrite,
        include=tuple(args.include or ()),
        exclude=tuple(args.exclude or ()),
        verbose=args.verbose,
        generate_mapping=args.mapping is not False,
        mapping_file=args.mapping if isinstance(args.mapping, str) else None,
        content_hash=args.content_hash,
    )

    if len(args.sources) == 1:
        results = uploader.upload(options)
    else:
        sources = [str(Path(source).resolve()) for source in args.sources]
        results = uploader.upload_multiple(sources, options)

    return print_summary(results)


def cmd_list(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    client = OSSClient(config)

    print(f"📂 Listing files in bucket: {config.bucket}\n")

    if args.directories:
        listing = client.list(prefix=args.prefix, max_keys=args.max_keys, delimiter="/")
        if not listing.prefixes:
            print("No directories found.")
            return 0
        print(f"Found {len(listing.prefixes)} directory(ies):\n")
        for prefix in listing.prefixes:
            print(f"  📁 {prefix}")
        return 0

    listing = client.list(prefix=args.prefix, max_keys=args.max_keys)
    if not listing.objects:
        print("No files found.")
        return 0

    print(f"Found {len(listing.objects)} file(s):\n")
    for obj in listing.objects:
        print(f"  {obj.key} ({format_bytes(obj.size)})")
    if listing.truncated:
        print(f"\n… more files available (raise --max-keys above {args.max_keys})")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    client = OSSClient(config)

    print(f"⚠️  Deleting file: {args.path}")
    client.delete(args.path)
    print(f"✓ Deleted: {args.path}")
    print("✨ File deleted successfully!")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    path = create_sample_config(args.output, args.type)
    print(f"✓ Sample configuration created: {path}")

    if path.suffix == ".py" or args.type == "py":
        print("💡 Python config reads OSS_* environment variables with fallback values.")
        print("Please set environment variables or update the fallback values.")
    else:
        print("Please update the configuration with your actual credentials.")
        print("💡 Tip: Use `oss-uploader init -o oss.config.py` for a config that reads environment variables.")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    client = OSSClient(config)

    print("📦 Bucket Information:\n")
    info = client.bucket_info()

    print(f"  Bucket: {info.name}")
    print(f"  Region: {config.region}")
    if info.location:
        print(f"  Location: {info.location}")
    if info.creation_date:
        print(f"  Created: {info.creation_date}")
    if info.storage_class:
        print(f"  Storage class: {info.storage_class}")
    print("\n✨ Connection successful!")
    return 0


def cmd_browse(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    client = OSSClient(config)

    selected = browse_directories(client, start_prefix=args.prefix)
    if selected is None:
        print("No directory selected.")
        return 0

    print(f"📁 Selected: {selected or '/'}")
    print(f"💡 Upload here with: oss-uploader upload <source> --target {selected or '/'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    level = args.log_level or ("DEBUG" if getattr(args, "verbose", False) else "WARNING")
    setup_logging(level=level)

    try:
        return args.handler(args)

    except KeyboardInterrupt:
        print("\n⚠️  Cancelled by user")
        return 130

    except EXPECTED_ERRORS as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"\n❌ Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

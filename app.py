from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

import textdb
from textdb.commands import StoreCommand
from textdb.core.config import ConfigFsPaths, ConfigManager
from textdb.core.errors import ConfigError, TextDBError
from textdb.core.logger import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="TextDB console: file-backed key-value stores")
    ap.add_argument("--config-root", default=".", help="Directory holding config/textdb.json.")
    ap.add_argument("--root", default=None, help="Override the store root directory.")
    ap.add_argument("--store", default="Test", help="Store to operate on.")
    ap.add_argument("--interval", type=float, default=None, help="Override the sync interval (seconds).")
    ap.add_argument("args", nargs="*", help="One command to run, e.g. 'set key value'. Interactive if omitted.")
    return ap


def _load_config(args: argparse.Namespace, logger: logging.Logger) -> textdb.TextDBConfig:
    cm = ConfigManager(fs=ConfigFsPaths(args.config_root), logger=logger)
    data = cm.load().model_dump()
    if args.root:
        data["root_dir"] = args.root
    if args.interval is not None:
        data["defaults"]["sync_interval_seconds"] = float(args.interval)
    try:
        return textdb.TextDBConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid command-line override: {e.errors(include_url=False)[0]['msg']}") from e


def _interactive(cmd: StoreCommand, logger: logging.Logger) -> None:
    logger.info(f'TextDB console ready on store "{cmd.store_name}". Type /exit to quit. (/sync, /dump, {cmd.usage_line()})')
    while True:
        try:
            text = input("> ").strip()
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            break
        if not text:
            continue
        if text == "/exit":
            break
        if text == "/sync":
            try:
                res = textdb.open_store(cmd.store_name).sync()
                print(res.to_dict())
            except (TextDBError, OSError) as e:
                print(f"Sync failed: {e}")
            continue
        if text == "/dump":
            for k, v in textdb.open_store(cmd.store_name).items():
                print(f"{k} = {v}")
            continue
        parts = text.split()
        if parts and cmd.matches(parts[0]):
            parts = parts[1:]
        ok, response = cmd.execute(parts)
        print(response if ok else f"Error: {response}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        cfg = _load_config(args, logging.getLogger("textdb.config"))
    except ConfigError as e:
        print(f"Config error: {e.user_message}", file=sys.stderr)
        return 2
    logger = setup_logging(cfg.logging.log_dir, level=cfg.logging.level, console=cfg.logging.console)
    textdb.configure(cfg, logger=logger.getChild("registry"))

    cmd = StoreCommand(args.store)
    try:
        if args.args:
            ok, response = cmd.execute(args.args)
            print(response)
            return 0 if ok else 1
        _interactive(cmd, logger)
        return 0
    finally:
        textdb.shutdown()


if __name__ == "__main__":
    sys.exit(main())

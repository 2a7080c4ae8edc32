# timelockwatch/base/config.py
# Configuration for the monitored deployment, the ledger source and logging

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from timelockwatch.errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_EXECUTOR = "0x2bF3cC8Fa6F067cc1741c7467C8Ee9F00e837757"
DEFAULT_TIMELOCKS: Tuple[str, ...] = ("0xAFa2c40DF28768eaB8aDD6f2572B32A7F8c86a5E",)

# lowercase address -> display name
DEFAULT_ADDRESS_NAMES: Dict[str, str] = {
    "0xafa2c40df28768eab8add6f2572b32a7f8c86a5e": "24 hour Timelock",
    "0xdb9daa0a50b33e4fe9d0ac16a1df1d335f96595e": "Masterchef",
    "0x0309c98b1bffa350bcb3f9fb9780970ca32a5060": "BDPI",
}


@dataclass(frozen=True)
class ChainConfig:
    executor_address: str = DEFAULT_EXECUTOR
    timelock_addresses: Tuple[str, ...] = DEFAULT_TIMELOCKS
    address_names: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ADDRESS_NAMES))
    explorer_url: str = "https://etherscan.io"

    @property
    def timelocks(self) -> frozenset:
        """Monitored timelock addresses, lowercased for comparison."""
        return frozenset(a.lower() for a in self.timelock_addresses)


@dataclass(frozen=True)
class EtherscanConfig:
    api_url: str = "https://api.etherscan.io/api"
    api_key: str = ""
    max_records: int = 10_000
    request_timeout: float = 30.0
    skip_reverted: bool = True


@dataclass(frozen=True)
class DecodeConfig:
    workers: int = 1


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file_enabled: bool = False
    file_path: Path = field(default_factory=lambda: Path.home() / ".timelockwatch" / "timelockwatch.log")
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class TimelockWatchConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    etherscan: EtherscanConfig = field(default_factory=EtherscanConfig)
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    log: LogConfig = field(default_factory=LogConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "TimelockWatchConfig":
        timelocks_str = os.getenv("TIMELOCKWATCH_TIMELOCKS", "")
        timelocks = tuple(a.strip() for a in timelocks_str.split(",") if a.strip()) or DEFAULT_TIMELOCKS

        names = dict(DEFAULT_ADDRESS_NAMES)
        names.update(_parse_names(os.getenv("TIMELOCKWATCH_ADDRESS_NAMES", "")))

        try:
            chain = ChainConfig(
                executor_address=os.getenv("TIMELOCKWATCH_EXECUTOR", DEFAULT_EXECUTOR),
                timelock_addresses=timelocks,
                address_names=names,
                explorer_url=os.getenv("TIMELOCKWATCH_EXPLORER_URL", "https://etherscan.io"),
            )

            etherscan = EtherscanConfig(
                api_url=os.getenv("TIMELOCKWATCH_ETHERSCAN_URL", "https://api.etherscan.io/api"),
                api_key=os.getenv("TIMELOCKWATCH_ETHERSCAN_API_KEY", ""),
                max_records=int(os.getenv("TIMELOCKWATCH_MAX_RECORDS", "10000")),
                request_timeout=float(os.getenv("TIMELOCKWATCH_TIMEOUT", "30")),
                skip_reverted=os.getenv("TIMELOCKWATCH_SKIP_REVERTED", "true").lower() == "true",
            )

            decode = DecodeConfig(
                workers=int(os.getenv("TIMELOCKWATCH_DECODE_WORKERS", "1")),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        log_file = os.getenv("TIMELOCKWATCH_LOG_FILE", "")
        log = LogConfig(
            level=os.getenv("TIMELOCKWATCH_LOG_LEVEL", "INFO"),
            file_enabled=bool(log_file),
            file_path=Path(log_file) if log_file else LogConfig().file_path,
        )

        return cls(
            chain=chain,
            etherscan=etherscan,
            decode=decode,
            log=log,
            debug=os.getenv("TIMELOCKWATCH_DEBUG", "false").lower() == "true",
        )


def _parse_names(raw: str) -> Dict[str, str]:
    # "0xabc=Masterchef,0xdef=BDPI"
    names: Dict[str, str] = {}
    for item in raw.split(","):
        if not item.strip():
            continue
        if "=" not in item:
            raise ConfigError(f"Malformed address name entry: {item!r}", details={"entry": item})
        address, name = item.split("=", 1)
        names[address.strip().lower()] = name.strip()
    return names


_config: Optional[TimelockWatchConfig] = None


def get_config() -> TimelockWatchConfig:
    global _config
    if _config is None:
        _config = TimelockWatchConfig.from_env()
    return _config


def set_config(config: Optional[TimelockWatchConfig]) -> None:
    global _config
    _config = config


def setup_logging(config: Optional[TimelockWatchConfig] = None) -> None:
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_enabled:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.log.file_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        )
        handlers.append(file_handler)

    level = "DEBUG" if cfg.debug else cfg.log.level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )

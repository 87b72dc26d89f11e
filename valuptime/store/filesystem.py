"""Filesystem-based BlockSource and ValidatorRegistry.

Reads JSON exports of the block and validator collections from a local
directory:
  {data_dir}/blocks.json.gz      [{"height": N, "validators": ["ADDR", ...]}, ...]
  {data_dir}/validators.json.gz  [{"address", "operator_address", "description": {"moniker"}}, ...]

Plain ``.json`` files are used when the gzipped ones are absent.
"""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import Any, Collection, Iterable

import bittensor as bt
from pydantic import ValidationError

from valuptime.engine.aggregator import aggregate_participation
from valuptime.engine.errors import DataAccessError
from valuptime.engine.models import (
    AggregateGroup,
    BlockRecord,
    UpgradeWindow,
    ValidatorMetadata,
)

BLOCKS_COLLECTION = "blocks"
VALIDATORS_COLLECTION = "validators"


def _write_gzip_json(path: Path, data: Any) -> None:
    """Write data as gzipped JSON, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = json.dumps(data, default=str, sort_keys=True).encode()
    with gzip.open(path, "wb") as f:
        f.write(raw)


def _read_gzip_json(path: Path) -> Any:
    """Read gzipped JSON file."""
    with gzip.open(path, "rb") as f:
        return json.loads(f.read())


def _read_json(path: Path) -> Any:
    """Read plain JSON file."""
    with open(path) as f:
        return json.load(f)


class FilesystemStore:
    """Local JSON-dump BlockSource + ValidatorRegistry."""

    def __init__(self, data_dir: str | Path):
        self.base = Path(data_dir)

    async def close(self) -> None:
        return None

    def _collection_path(self, name: str) -> Path | None:
        for candidate in (self.base / f"{name}.json.gz", self.base / f"{name}.json"):
            if candidate.exists():
                return candidate
        return None

    def _load_collection(self, name: str, start_block: int | None = None, end_block: int | None = None) -> list[Any]:
        path = self._collection_path(name)
        if path is None:
            raise DataAccessError(
                f"no {name} export in {self.base}",
                start_block=start_block,
                end_block=end_block,
            )
        try:
            data = _read_gzip_json(path) if path.suffix == ".gz" else _read_json(path)
        except (OSError, ValueError) as e:
            raise DataAccessError(
                f"cannot read {path}: {e}",
                start_block=start_block,
                end_block=end_block,
            ) from e
        if not isinstance(data, list):
            raise DataAccessError(
                f"{path} must hold a JSON array, got {type(data).__name__}",
                start_block=start_block,
                end_block=end_block,
            )
        return data

    # -- Writes --

    def put_blocks(self, blocks: Iterable[BlockRecord]) -> Path:
        """Write a blocks export. Returns the file path."""
        path = self.base / f"{BLOCKS_COLLECTION}.json.gz"
        _write_gzip_json(path, [
            {"height": b.height, "validators": sorted(b.participants)}
            for b in blocks
        ])
        return path

    def put_validators(self, records: Iterable[ValidatorMetadata]) -> Path:
        """Write a validators export in registry order. Returns the file path."""
        path = self.base / f"{VALIDATORS_COLLECTION}.json.gz"
        _write_gzip_json(path, [
            {
                "address": r.identifier,
                "operator_address": r.operator_address,
                "description": {"moniker": r.moniker},
            }
            for r in records
        ])
        return path

    # -- BlockSource --

    async def fetch_blocks(self, start_block: int, end_block: int) -> list[BlockRecord]:
        docs = self._load_collection(BLOCKS_COLLECTION, start_block, end_block)
        blocks: list[BlockRecord] = []
        for doc in docs:
            try:
                block = BlockRecord.from_document(doc)
            except (KeyError, TypeError, ValidationError) as e:
                raise DataAccessError(
                    f"malformed block document: {e}",
                    start_block=start_block,
                    end_block=end_block,
                ) from e
            if start_block <= block.height <= end_block:
                blocks.append(block)

        blocks.sort(key=lambda b: b.height)
        bt.logging.debug({"filesystem_store": {"fetch_blocks": len(blocks), "documents": len(docs)}})
        return blocks

    async def aggregate_participation(
        self,
        start_block: int,
        end_block: int,
        window1: UpgradeWindow,
        window2: UpgradeWindow,
    ) -> list[AggregateGroup]:
        blocks = await self.fetch_blocks(start_block, end_block)
        aggregates = aggregate_participation(blocks, start_block, end_block, window1, window2)

        details: dict[str, list[ValidatorMetadata]] = {}
        for record in await self.get_validators([a.id for a in aggregates]):
            details.setdefault(record.identifier, []).append(record)

        return [
            AggregateGroup(**a.model_dump(), validator_details=details.get(a.id, []))
            for a in aggregates
        ]

    # -- ValidatorRegistry --

    async def list_validators(self) -> list[ValidatorMetadata]:
        """Every registry record in file order."""
        records: list[ValidatorMetadata] = []
        for doc in self._load_collection(VALIDATORS_COLLECTION):
            try:
                records.append(ValidatorMetadata.from_document(doc))
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                address = doc.get("address") if isinstance(doc, dict) else None
                raise DataAccessError(
                    f"malformed validator document: {e}",
                    validator_id=address if isinstance(address, str) else None,
                ) from e
        return records

    async def get_validators(self, identifiers: Collection[str]) -> list[ValidatorMetadata]:
        wanted = set(identifiers)
        if not wanted:
            return []
        return [r for r in await self.list_validators() if r.identifier in wanted]


__all__ = ["FilesystemStore"]

#!/usr/bin/env python3
"""
Flow Studio Memory Store

Persistent, capped history for agents and workflows:
- agent memory: agent name -> ordered task/response entries (cap 100)
- workflow history: workflow name -> ordered workflow records (cap 50)

Both collections live in JSON files under one directory, created lazily.
Writes are read-modify-write of the whole file with no locking; two writers
finishing at the same moment can lose one of the updates.

Example:
    from swarm.memory import MemoryStore, MemoryEntry

    store = MemoryStore()
    await store.save("Stylist", MemoryEntry(agent_name="Stylist", task="t", response="r"))
    recent = await store.load("Stylist", limit=5)
"""

import os
import json
import asyncio
import tempfile
from pathlib import Path
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import logging

from config import MemoryConfig

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


def write_json(path: Union[str, Path], data: Any) -> Path:
    """Write data as indented JSON, replacing path atomically"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


@dataclass
class MemoryEntry:
    """One recorded agent task and its response"""
    agent_name: str
    task: str
    response: Any
    timestamp: str = field(default_factory=utc_now)
    duration: Optional[float] = None
    context: Dict[str, Any] = field(default_factory=dict)
    usage: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryEntry":
        return cls(
            agent_name=data.get("agent_name", ""),
            task=data.get("task", ""),
            response=data.get("response"),
            timestamp=data.get("timestamp") or utc_now(),
            duration=data.get("duration"),
            context=data.get("context") or {},
            usage=data.get("usage") or {},
        )


class MemoryStore:
    """File-backed agent memory and workflow history"""

    def __init__(self, config: Optional[MemoryConfig] = None):
        self.config = config or MemoryConfig()
        self.memory_dir = Path(self.config.memory_dir)

    @property
    def agent_path(self) -> Path:
        return self.memory_dir / self.config.agent_file

    @property
    def workflow_path(self) -> Path:
        return self.memory_dir / self.config.workflow_file

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read_sync(self, path: Path) -> Dict[str, List[Dict[str, Any]]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read memory file {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_sync(self, path: Path, data: Dict[str, Any]) -> None:
        write_json(path, data)

    async def _read(self, path: Path) -> Dict[str, List[Dict[str, Any]]]:
        return await asyncio.to_thread(self._read_sync, path)

    async def _write(self, path: Path, data: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_sync, path, data)

    async def _append(self, path: Path, key: str, record: Dict[str, Any], cap: int) -> None:
        """Append a timestamped record under key, keeping the newest cap records"""
        data = await self._read(path)
        bucket = data.setdefault(key, [])
        bucket.append({**record, "timestamp": utc_now()})
        if len(bucket) > cap:
            data[key] = bucket[-cap:]
        await self._write(path, data)

    async def _tail(self, path: Path, key: str, limit: int) -> List[Dict[str, Any]]:
        data = await self._read(path)
        bucket = data.get(key) or []
        if limit <= 0:
            return []
        return bucket[-limit:]

    # ------------------------------------------------------------------
    # Agent memory
    # ------------------------------------------------------------------

    async def save(self, agent_name: str, entry: Union[MemoryEntry, Dict[str, Any]]) -> None:
        """Append an entry to an agent's memory, stamping a fresh timestamp"""
        record = entry.to_dict() if isinstance(entry, MemoryEntry) else dict(entry)
        record["agent_name"] = agent_name
        await self._append(self.agent_path, agent_name, record, self.config.agent_cap)

    async def load(self, agent_name: str, limit: int = 10) -> List[MemoryEntry]:
        """Most recent limit entries, oldest first. Empty if nothing is stored."""
        records = await self._tail(self.agent_path, agent_name, limit)
        return [MemoryEntry.from_dict(r) for r in records]

    async def search(self, agent_name: str, query: str, limit: int = 10) -> List[MemoryEntry]:
        """Case-insensitive match on task or response text among the newest 100 entries"""
        entries = await self.load(agent_name, 100)
        needle = query.lower()

        matches = [
            entry for entry in entries
            if needle in (entry.task or "").lower()
            or needle in json.dumps(entry.response, default=str, ensure_ascii=False).lower()
        ]
        return matches[-limit:] if limit > 0 else []

    async def stats(self, agent_name: str) -> Dict[str, Any]:
        """Count, time span and mean duration of an agent's memory"""
        entries = await self.load(agent_name, self.config.agent_cap)

        if not entries:
            return {
                "agent_name": agent_name,
                "total_memories": 0,
                "oldest_memory": None,
                "newest_memory": None,
                "avg_duration": 0,
            }

        durations = [e.duration for e in entries if e.duration is not None]
        return {
            "agent_name": agent_name,
            "total_memories": len(entries),
            "oldest_memory": entries[0].timestamp,
            "newest_memory": entries[-1].timestamp,
            "avg_duration": sum(durations) / len(durations) if durations else 0,
        }

    async def clear(self, agent_name: str) -> None:
        """Remove an agent's memory bucket"""
        data = await self._read(self.agent_path)
        if agent_name in data:
            del data[agent_name]
            await self._write(self.agent_path, data)
            logger.info(f"Cleared persisted memory for {agent_name}")

    async def export_all(self, agent_name: str, destination: Union[str, Path]) -> Path:
        """Write a snapshot of an agent's memory to destination"""
        entries = await self.load(agent_name, self.config.agent_cap)
        destination = Path(destination)
        snapshot = {
            "agent": agent_name,
            "exported_at": utc_now(),
            "count": len(entries),
            "entries": [e.to_dict() for e in entries],
        }
        await self._write(destination, snapshot)
        logger.info(f"Exported {len(entries)} memories for {agent_name} to {destination}")
        return destination

    async def agents(self) -> List[str]:
        """Names of agents with stored memory"""
        return list(await self._read(self.agent_path))

    # ------------------------------------------------------------------
    # Workflow history
    # ------------------------------------------------------------------

    async def save_workflow_result(self, workflow_name: str, record: Dict[str, Any]) -> None:
        """Append a workflow record, keeping the newest workflow_cap"""
        await self._append(self.workflow_path, workflow_name, dict(record), self.config.workflow_cap)

    async def load_workflow_history(self, workflow_name: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent limit workflow records, oldest first"""
        return await self._tail(self.workflow_path, workflow_name, limit)

# ABOUTME: Server catalog resolution: bundled snapshot -> local cache -> remote fetch.
# ABOUTME: Each layer is a tagged source strategy tried in order; first valid payload wins.
import enum
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import httpx

from mcpi.config import Settings
from mcpi.errors import RegistryUnavailable
from mcpi.models import CacheEnvelope, Catalog, ServerDefinition, ValidationResult
from mcpi.utils.env import find_unset_env_vars
from mcpi.utils.files import atomic_write_text

logger = logging.getLogger(__name__)

USER_AGENT = "mcpi-registry-client"


class SourceKind(enum.Enum):
    BUNDLED = "bundled"
    CACHED = "cached"
    REMOTE = "remote"
    STALE_CACHE = "stale-cache"


@dataclass(frozen=True)
class RegistrySource:
    """One layer of the resolution chain.

    ABOUTME: fetch returns a raw payload, None when the layer doesn't apply,
    ABOUTME: or raises when it applies but fails
    """
    kind: SourceKind
    fetch: Callable[[], dict[str, Any] | None]


def parse_catalog(payload: Any, source: str = "") -> Catalog:
    """Validate a registry payload and build a Catalog.

    ABOUTME: Requires a non-empty 'servers' list of well-formed entries
    ABOUTME: Any malformed entry rejects the whole payload

    Raises:
        ValueError: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise ValueError("Invalid registry format: payload must be an object")

    servers = payload.get("servers")
    if not isinstance(servers, list) or not servers:
        raise ValueError("Invalid registry format: missing or empty servers array")

    definitions = tuple(ServerDefinition.from_dict(entry) for entry in servers)

    return Catalog(
        version=str(payload.get("version", "")),
        last_updated=str(payload.get("lastUpdated", "")),
        servers=definitions,
        source=source,
    )


class ServerRegistry:
    """Loads and queries the catalog of installable servers.

    ABOUTME: load() is memoized for the object's lifetime
    ABOUTME: No partial catalog is ever returned
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.Client | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._clock = clock
        self._catalog: Catalog | None = None
        self._lock = threading.RLock()

    @property
    def cache_file(self) -> Path:
        return self._settings.cache_file

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    @property
    def source(self) -> str | None:
        return self._catalog.source if self._catalog else None

    def sources(self) -> list[RegistrySource]:
        """Resolution chain in order."""
        return [
            RegistrySource(SourceKind.BUNDLED, self._read_bundled),
            RegistrySource(SourceKind.CACHED, self._read_fresh_cache),
            RegistrySource(SourceKind.REMOTE, self._fetch_remote),
            RegistrySource(SourceKind.STALE_CACHE, self._read_stale_cache),
        ]

    def load(self) -> Catalog:
        """Return the catalog, resolving it on first call.

        Raises:
            RegistryUnavailable: If every source failed
        """
        with self._lock:
            if self._catalog is None:
                self._catalog = self._resolve(self.sources())
            return self._catalog

    def refresh(self, force: bool = False) -> Catalog:
        """Reload from cache or remote, skipping the bundled snapshot.

        ABOUTME: force=True ignores cache freshness and always fetches
        ABOUTME: Remote failure still falls back to an existing cache

        Raises:
            RegistryUnavailable: If no source produced a catalog
        """
        chain = [
            RegistrySource(SourceKind.REMOTE, self._fetch_remote),
            RegistrySource(SourceKind.STALE_CACHE, self._read_stale_cache),
        ]
        if not force:
            chain.insert(0, RegistrySource(SourceKind.CACHED, self._read_fresh_cache))

        with self._lock:
            self._catalog = self._resolve(chain)
            return self._catalog

    def _resolve(self, chain: list[RegistrySource]) -> Catalog:
        last_error: BaseException | None = None

        for source in chain:
            try:
                payload = source.fetch()
                if payload is None:
                    logger.debug(f"Registry source {source.kind.value} not available")
                    continue
                catalog = parse_catalog(payload, source=source.kind.value)
            except (OSError, ValueError, TypeError, httpx.HTTPError) as e:
                logger.debug(f"Registry source {source.kind.value} failed: {e}")
                last_error = e
                continue

            if source.kind is SourceKind.REMOTE:
                self._write_cache(payload)
            elif source.kind is SourceKind.STALE_CACHE:
                logger.warning("Remote registry unreachable, using expired local cache")

            logger.debug(
                f"Loaded {len(catalog.servers)} servers from {source.kind.value} registry"
            )
            return catalog

        raise RegistryUnavailable(
            f"Failed to load server registry: {last_error or 'no source available'}",
            cause=last_error,
        )

    def _read_bundled(self) -> dict[str, Any] | None:
        path = self._settings.bundled_registry
        if path is None or not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _cache_envelope(self) -> CacheEnvelope | None:
        cache_file = self._settings.cache_file
        if not cache_file.exists():
            return None
        with open(cache_file, encoding="utf-8") as f:
            payload = json.load(f)
        return CacheEnvelope(
            payload=payload,
            fetched_at=datetime.fromtimestamp(cache_file.stat().st_mtime),
            ttl=self._settings.cache_ttl,
        )

    def _read_fresh_cache(self) -> dict[str, Any] | None:
        envelope = self._cache_envelope()
        if envelope is None or not envelope.is_fresh(self._clock()):
            return None
        return envelope.payload

    def _read_stale_cache(self) -> dict[str, Any] | None:
        envelope = self._cache_envelope()
        return envelope.payload if envelope else None

    def _fetch_remote(self) -> dict[str, Any]:
        logger.info(f"Fetching registry from {self._settings.registry_url}")
        headers = {"User-Agent": USER_AGENT}
        if self._http_client is not None:
            response = self._http_client.get(self._settings.registry_url, headers=headers)
        else:
            response = httpx.get(
                self._settings.registry_url,
                headers=headers,
                timeout=self._settings.remote_timeout,
                follow_redirects=True,
            )
        response.raise_for_status()
        return response.json()

    def _write_cache(self, payload: dict[str, Any]) -> None:
        cache_file = self._settings.cache_file
        try:
            atomic_write_text(cache_file, json.dumps(payload, indent=2) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write registry cache {cache_file}: {e}")

    def cache_info(self) -> dict[str, Any]:
        """Describe the local cache file.

        Returns:
            Dict with exists, path, age_hours and size_bytes (None when absent)
        """
        cache_file = self._settings.cache_file
        if not cache_file.exists():
            return {"exists": False, "path": str(cache_file), "age_hours": None, "size_bytes": None}

        stat = cache_file.stat()
        age = self._clock() - datetime.fromtimestamp(stat.st_mtime)
        return {
            "exists": True,
            "path": str(cache_file),
            "age_hours": age.total_seconds() / 3600,
            "size_bytes": stat.st_size,
        }

    def all_servers(self) -> list[ServerDefinition]:
        return list(self.load().servers)

    def get_server(self, server_id: str) -> ServerDefinition | None:
        for server in self.load().servers:
            if server.id == server_id:
                return server
        return None

    def search(self, query: str) -> list[ServerDefinition]:
        """Case-insensitive substring match over name, description and tags."""
        needle = query.lower()
        return [
            server
            for server in self.load().servers
            if needle in server.name.lower()
            or needle in server.description.lower()
            or any(needle in tag.lower() for tag in server.tags)
        ]

    def by_category(self, category: str) -> list[ServerDefinition]:
        return [s for s in self.load().servers if s.category == category]

    def categories(self) -> list[str]:
        return list(dict.fromkeys(s.category for s in self.load().servers))

    def stats(self) -> dict[str, Any]:
        servers = self.load().servers

        by_category: dict[str, int] = {}
        by_difficulty: dict[str, int] = {}
        for server in servers:
            by_category[server.category] = by_category.get(server.category, 0) + 1
            if server.difficulty:
                by_difficulty[server.difficulty] = by_difficulty.get(server.difficulty, 0) + 1

        auth_required = sum(1 for s in servers if s.requires_auth)
        return {
            "total": len(servers),
            "by_category": by_category,
            "by_auth_required": {
                "required": auth_required,
                "not_required": len(servers) - auth_required,
            },
            "by_difficulty": by_difficulty,
        }

    def validate_server(self, server_id: str) -> ValidationResult:
        """Sanity-check a catalog entry before installing it."""
        result = ValidationResult()
        server = self.get_server(server_id)

        if server is None:
            result.errors.append(f"Server '{server_id}' not found in registry")
            return result

        if not server.installation.command:
            result.errors.append(f"Server '{server_id}' missing installation command")

        if server.requires_auth and not server.installation.env:
            result.warnings.append(
                f"Server '{server_id}' requires authentication but no environment variables specified"
            )

        for value in server.installation.env.values():
            for var_name in find_unset_env_vars(value):
                result.warnings.append(
                    f"Environment variable '{var_name}' not set for server '{server_id}'"
                )

        return result

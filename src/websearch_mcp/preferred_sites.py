from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

_MAX_MATCHING_SITES = 4


@runtime_checkable
class QueryEnhancer(Protocol):
    def enhance(self, query: str) -> str:
        """Return the query to send upstream. Must not raise."""
        ...


@dataclass(frozen=True)
class PreferredSite:
    url: str
    keywords: tuple[str, ...]


def _parse_site(entry: object) -> PreferredSite | None:
    if not isinstance(entry, dict):
        return None
    url = entry.get("url")
    keywords = entry.get("keywords")
    if not isinstance(url, str) or not isinstance(keywords, list):
        return None
    if not all(isinstance(k, str) for k in keywords):
        return None
    return PreferredSite(url=url, keywords=tuple(keywords))


class PreferredSitesEnhancer:
    """Appends ``site:`` clauses for configured sites whose keywords appear in the query.

    ``preferred_sites.json`` holds a list of ``{"url": ..., "keywords": [...]}``
    objects. It is read once, on first use. A missing or malformed file
    disables enhancement.
    """

    def __init__(self, path: str | Path = "preferred_sites.json") -> None:
        self._path = Path(path)
        self._sites: list[PreferredSite] | None = None

    def load_sites(self) -> list[PreferredSite]:
        if self._sites is not None:
            return self._sites

        sites: list[PreferredSite] = []
        try:
            with open(self._path, encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError(f"{self._path.name} must contain an array")
            sites = [site for site in map(_parse_site, raw) if site is not None]
            logger.debug(f"Loaded {len(sites)} preferred sites from {self._path}")
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as ex:
            logger.debug(f"Failed to load preferred sites: {ex}")

        self._sites = sites
        return sites

    def matching_sites(self, query: str) -> list[str]:
        query_lower = query.lower()
        matches: list[str] = []
        for site in self.load_sites():
            if len(matches) >= _MAX_MATCHING_SITES:
                break
            matched = [k for k in site.keywords if k.lower() in query_lower]
            if matched:
                matches.append(site.url)
                logger.debug(
                    f'Query "{query}" matched site {site.url} (keywords: {", ".join(matched)})'
                )
        return matches

    def enhance(self, query: str) -> str:
        try:
            sites = self.matching_sites(query)
        except Exception as ex:
            logger.warning(f"Query enhancement failed, using original query: {ex}")
            return query

        if not sites:
            return query

        operators = " OR ".join(f"site:{site}" for site in sites)
        enhanced = f"{query} ({operators})"
        logger.debug(f'Enhanced query: "{query}" -> "{enhanced}"')
        return enhanced


class NoopEnhancer:
    def enhance(self, query: str) -> str:
        return query

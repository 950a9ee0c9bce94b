from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    keywords: tuple[str, ...]
    summary: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "keywords": list(self.keywords),
            "summary": self.summary,
        }


@runtime_checkable
class SearchProvider(Protocol):
    @property
    def provider_name(self) -> str: ...

    async def search(
        self, query: str, max_results: int, date_filter: str | None = None
    ) -> list[SearchResult]:
        """Return at most ``max_results`` results in the provider's ranking order.

        Raises ``ProviderError`` subclasses on failure, including
        ``SoftBlockDetected`` for a success status that carries a block page.
        """
        ...

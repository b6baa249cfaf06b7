"""
Credit Dispute Engine - Template Corpus Sources

A template corpus is a list of (name, type, body_text) records. Sources:
- StaticTemplateSource: in-memory list
- RemoteTemplateSource: HTTP repository (listing + fetch by name)
- DatabaseTemplateSource: the letter_templates table

TemplateCache lifecycle: construct once, populated lazily on first use,
reset() empties it. A source that fails is not cached; it is retried once
its cooldown (TEMPLATE_RETRY_SECONDS) has passed. get_template_cache()
returns the process-wide instance.
"""
from __future__ import annotations
import logging
import threading
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import quote

import requests
from sqlalchemy.exc import SQLAlchemyError

from ...models.ssot import LetterTemplate
from ..errors import TemplateFetchError
from .templates import find_tokens, infer_template_type, normalize_token

logger = logging.getLogger(__name__)


def build_template(name: str, body_text: str, template_type: Optional[str] = None) -> LetterTemplate:
    """LetterTemplate with its type inferred from the name when not declared."""
    declared = (template_type or "").strip().lower().replace(" ", "_").replace("-", "_")
    return LetterTemplate(
        name=name,
        type=declared or infer_template_type(name),
        body_text=body_text or "",
        placeholder_tokens=tuple(find_tokens(body_text or "")),
    )


# =============================================================================
# SOURCES
# =============================================================================

class TemplateSource:
    """Base class. load() returns the whole corpus or raises TemplateFetchError."""

    name = "template source"

    def load(self) -> List[LetterTemplate]:
        raise NotImplementedError


class StaticTemplateSource(TemplateSource):
    name = "static"

    def __init__(self, templates: Iterable[Union[LetterTemplate, Dict[str, Any]]] = ()):
        self._templates = [
            t if isinstance(t, LetterTemplate)
            else build_template(t["name"], t.get("body_text", ""), t.get("type"))
            for t in templates
        ]

    def load(self) -> List[LetterTemplate]:
        return list(self._templates)


class RemoteTemplateSource(TemplateSource):
    """
    Template repository over HTTP.

    GET {base_url}/templates        -> [{"name": ..., "type": ..., "body_text": ...}, ...]
    GET {base_url}/templates/{name} -> {"name": ..., "body_text": ...}

    Listing entries without a body are fetched by name.
    """

    name = "remote"

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, url: str) -> Any:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise TemplateFetchError(f"Template fetch failed for {url}: {exc}") from exc
        except ValueError as exc:
            raise TemplateFetchError(f"Template repository returned invalid JSON for {url}") from exc

    def fetch(self, name: str) -> LetterTemplate:
        data = self._get_json(f"{self.base_url}/templates/{quote(name)}")
        if not isinstance(data, dict) or not data.get("body_text"):
            raise TemplateFetchError(f"Template {name!r} has no body")
        return build_template(data.get("name", name), data["body_text"], data.get("type"))

    def load(self) -> List[LetterTemplate]:
        listing = self._get_json(f"{self.base_url}/templates")
        if not isinstance(listing, list):
            raise TemplateFetchError("Template listing is not a list")

        templates = []
        for entry in listing:
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            if entry.get("body_text"):
                templates.append(build_template(entry["name"], entry["body_text"], entry.get("type")))
            else:
                templates.append(self.fetch(entry["name"]))
        logger.info(f"Loaded {len(templates)} templates from {self.base_url}")
        return templates


class DatabaseTemplateSource(TemplateSource):
    """Active rows of the letter_templates table."""

    name = "database"

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None):
        if session_factory is None:
            from ...database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def load(self) -> List[LetterTemplate]:
        from ...models.db_models import LetterTemplateDB

        db = self.session_factory()
        try:
            rows = (
                db.query(LetterTemplateDB)
                .filter(LetterTemplateDB.is_active.is_(True))
                .order_by(LetterTemplateDB.id)
                .all()
            )
            return [build_template(row.name, row.body_text, row.template_type) for row in rows]
        except SQLAlchemyError as exc:
            raise TemplateFetchError(f"Template table unavailable: {exc}") from exc
        finally:
            db.close()


# =============================================================================
# CACHE
# =============================================================================

class TemplateCache:
    """
    Lazily loaded union of several sources, in source order.

    Loading runs under one lock so concurrent first use loads each source
    once. Only successful loads are kept. A source that failed is skipped
    for retry_after seconds.
    """

    def __init__(
        self,
        sources: Optional[Iterable[TemplateSource]] = None,
        retry_after: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sources: List[TemplateSource] = list(sources or [])
        self.retry_after = retry_after
        self._clock = clock
        self._lock = threading.Lock()
        self._loaded: Dict[int, List[LetterTemplate]] = {}
        self._failed_at: Dict[int, float] = {}

    def _pending(self) -> List[int]:
        now = self._clock()
        return [
            index for index in range(len(self.sources))
            if index not in self._loaded
            and (index not in self._failed_at or now - self._failed_at[index] >= self.retry_after)
        ]

    def get_templates(self) -> List[LetterTemplate]:
        if self._pending():
            with self._lock:
                for index in self._pending():
                    source = self.sources[index]
                    try:
                        self._loaded[index] = source.load()
                        self._failed_at.pop(index, None)
                    except TemplateFetchError as exc:
                        self._failed_at[index] = self._clock()
                        logger.warning(
                            f"Template source '{source.name}' unavailable, "
                            f"skipping for {self.retry_after:g}s: {exc}"
                        )

        templates: List[LetterTemplate] = []
        for index in range(len(self.sources)):
            templates.extend(self._loaded.get(index, []))
        return templates

    def find(self, name: str) -> Optional[LetterTemplate]:
        wanted = normalize_token(name)
        for template in self.get_templates():
            if normalize_token(template.name) == wanted:
                return template
        return None

    def reset(self) -> None:
        with self._lock:
            self._loaded.clear()
            self._failed_at.clear()

    @property
    def is_loaded(self) -> bool:
        return bool(self.sources) and len(self._loaded) == len(self.sources)


def default_sources() -> List[TemplateSource]:
    """Database corpus, plus the remote repository when one is configured."""
    from ...config import get_settings

    settings = get_settings()
    sources: List[TemplateSource] = [DatabaseTemplateSource()]
    if settings.template_repository_url:
        sources.append(RemoteTemplateSource(settings.template_repository_url, settings.template_fetch_timeout))
    return sources


@lru_cache(maxsize=1)
def get_template_cache() -> TemplateCache:
    """Process-wide cache over default_sources(), shared by default resolvers."""
    from ...config import get_settings

    return TemplateCache(default_sources(), retry_after=get_settings().template_retry_seconds)

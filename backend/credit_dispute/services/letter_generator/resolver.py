"""
Credit Dispute Engine - Letter Template Resolver

Picks the template for an issue type. States, first hit wins:

    EXACT      template type == issue type
    PARTIAL    template type contains, or is contained in, the issue type
    GENERIC    the corpus's general-purpose template
    STRUCTURAL no template; the composer builds the fixed skeleton

The terminal state is always reached. Source failures only shrink the
corpus the machine runs over.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from ...models.ssot import IssueType, LetterTemplate, Resolution
from .template_source import TemplateCache, get_template_cache
from .templates import GENERAL_TYPE, normalize_issue_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateResolution:
    resolution: Resolution
    template: Optional[LetterTemplate] = None


class LetterTemplateResolver:
    """Resolves issue types against a TemplateCache."""

    def __init__(self, cache: Optional[TemplateCache] = None):
        self.cache = cache if cache is not None else get_template_cache()

    def resolve(self, issue_type: Union[IssueType, str, None]) -> TemplateResolution:
        raw = issue_type.value if isinstance(issue_type, IssueType) else (issue_type or "")
        wanted = normalize_issue_type(raw)
        templates = [t for t in self.cache.get_templates() if t.body_text.strip()]

        if wanted != GENERAL_TYPE:
            template = self._exact(templates, wanted)
            if template:
                logger.debug(f"Exact template '{template.name}' for {raw!r}")
                return TemplateResolution(Resolution.EXACT, template)

            template = self._partial(templates, wanted, raw.lower())
            if template:
                logger.debug(f"Partial template '{template.name}' for {raw!r}")
                return TemplateResolution(Resolution.PARTIAL, template)

        template = self._generic(templates)
        if template:
            logger.debug(f"Generic template '{template.name}' for {raw!r}")
            return TemplateResolution(Resolution.GENERIC, template)

        logger.debug(f"No template for {raw!r}; structural fallback")
        return TemplateResolution(Resolution.STRUCTURAL)

    @staticmethod
    def _exact(templates: List[LetterTemplate], wanted: str) -> Optional[LetterTemplate]:
        for template in templates:
            if template.type == wanted:
                return template
        return None

    @staticmethod
    def _partial(templates: List[LetterTemplate], wanted: str, raw: str) -> Optional[LetterTemplate]:
        for template in templates:
            kind = template.type
            if not kind or kind == GENERAL_TYPE:
                continue
            if kind in wanted or wanted in kind or (raw and (kind in raw or raw in kind)):
                return template
        for template in templates:
            if template.type != GENERAL_TYPE and normalize_issue_type(template.type) == wanted:
                return template
        return None

    @staticmethod
    def _generic(templates: List[LetterTemplate]) -> Optional[LetterTemplate]:
        for template in templates:
            if template.type == GENERAL_TYPE:
                return template
        return None

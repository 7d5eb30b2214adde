"""
Per-field failure isolation for the page parsers.

Every field extractor is run through a FieldExtractor bound to one page.
A failing or implausible extractor degrades only its own field: the
failure is logged with the field name and slug, recorded as a
FieldDiagnostic, and the declared default is returned instead.
"""
from copy import deepcopy
from typing import Callable, List, Optional, TypeVar

from bs4 import Tag
from loguru import logger

from listing_intel.models import FieldDiagnostic
from listing_intel.text_utils import collapse_whitespace

T = TypeVar("T")

# Menus repeated on every page; links inside them never describe the page itself
NAVIGATION_CLASS_MARKERS = ("megamenu-component", "side-menu-component", "navbar")


class FieldExtractor:
    """Runs field extractors for one page and collects their diagnostics."""

    def __init__(self, slug: str):
        self.slug = slug
        self.diagnostics: List[FieldDiagnostic] = []

    def extract(
        self,
        name: str,
        fn: Callable[[], T],
        default: T,
        validate: Optional[Callable[[T], bool]] = None,
    ) -> T:
        """
        Run a single field extractor inside its own failure boundary.

        Args:
            name: Field name, used for logging and diagnostics.
            fn: Zero-argument extractor.
            default: Value returned when the extractor fails.
            validate: Optional plausibility check on the extracted value.

        Returns:
            The extracted value, or a copy of `default` on failure.
        """
        try:
            value = fn()
            plausible = validate is None or value is None or validate(value)
        except Exception as e:
            return self._fallback(name, default, f"{type(e).__name__}: {e}")

        if not plausible:
            return self._fallback(name, default, f"implausible value {value!r}")
        return value

    def _fallback(self, name: str, default: T, error: str) -> T:
        logger.warning(f"failed to parse {name} for '{self.slug}': {error}")
        self.diagnostics.append(FieldDiagnostic(field=name, slug=self.slug, error=error))
        return deepcopy(default)


def in_navigation(el: Tag) -> bool:
    """True when the element sits inside a site-wide navigation menu."""
    for parent in el.parents:
        classes = parent.get("class") or []
        if any(marker in cls for cls in classes for marker in NAVIGATION_CLASS_MARKERS):
            return True
    return False


def absolute_url(href: str, base_url: str) -> str:
    if not href or href.startswith("http"):
        return href
    return f"{base_url}{href}"


def element_text(el: Tag) -> str:
    """Text of an element with the markup's own spacing kept, whitespace runs collapsed."""
    return collapse_whitespace(el.get_text())

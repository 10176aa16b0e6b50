"""Bounded click-and-re-extract discovery of links hidden behind expandable UI."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import InvalidInputError
from ..fetchers.protocols import InteractiveSession
from ..models.links import LinkRecord, LinkSet

logger = logging.getLogger(__name__)

# Most structurally specific first; generic ARIA buttons last since they also match menus
DEFAULT_SELECTORS: tuple[str, ...] = (
    "li.directory.collapsed > a",
    "li.collapsed > a",
    "details summary",
    "[data-accordion-trigger]",
    '[data-toggle="collapse"]',
    ".accordion-button",
    ".expand-button",
    '[role="button"][aria-expanded]',
    "button[aria-expanded]",
)

DEFAULT_MAX_ITERATIONS = 10
DEFAULT_CLICK_DELAY = 0.1
MAX_CONSECUTIVE_EMPTY = 2

CONFIDENCE_EXPANDED = 0.9
CONFIDENCE_FLAT = 0.5


@dataclass
class ExpansionState:
    """
    Mutable state of one expand() call.

    Attributes:
        link_set: Links discovered so far, first-wins
        clicked_element_ids: "<selector>::<path>" identities in click order
        clicked_paths: Structural paths already clicked, under any selector
        failed_element_ids: Identities whose click raised
        interaction_count: Successful clicks
        iteration: Iterations started
        consecutive_empty_iterations: Iterations in a row without a click
    """

    link_set: LinkSet = field(default_factory=LinkSet)
    clicked_element_ids: list[str] = field(default_factory=list)
    clicked_paths: set[str] = field(default_factory=set)
    failed_element_ids: set[str] = field(default_factory=set)
    interaction_count: int = 0
    iteration: int = 0
    consecutive_empty_iterations: int = 0

    def already_clicked(self, identity: str, path: str) -> bool:
        return path in self.clicked_paths or identity in self.clicked_element_ids

    def record_click(self, identity: str, path: str) -> None:
        self.clicked_element_ids.append(identity)
        self.clicked_paths.add(path)
        self.interaction_count += 1


@dataclass(frozen=True)
class ExpansionResult:
    """Outcome of one expansion run."""

    links: list[LinkRecord]
    interaction_count: int
    iterations: int
    clicked_element_ids: tuple[str, ...]
    exhausted: bool

    @property
    def confidence(self) -> float:
        return CONFIDENCE_EXPANDED if self.interaction_count > 0 else CONFIDENCE_FLAT


class ExpansionEngine:
    """
    Reveal nested links by repeatedly clicking expandable elements.

    Each iteration re-extracts links, then walks the selectors in priority
    order and clicks the first visible element not clicked before. After a
    click the scan restarts from the top selector in the next iteration,
    since expanding a node can reveal new higher-priority nodes (year ->
    month -> file). The run stops after two iterations in a row without a
    click, or after max_iterations regardless of what is left.

    A failing element (bad selector, detached node, click error) is skipped.
    Errors from the session itself, and cancellation, propagate.

    Example:
        engine = ExpansionEngine(max_iterations=10, click_delay=0.1)
        result = await engine.expand(page.interactive, page.static_links)
        print(result.interaction_count, result.confidence)
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        click_delay: float = DEFAULT_CLICK_DELAY,
        custom_selectors: Optional[Sequence[str]] = None,
        selectors: Sequence[str] = DEFAULT_SELECTORS,
    ) -> None:
        """
        Initialize the engine.

        Args:
            max_iterations: Hard upper bound on iterations (>= 1)
            click_delay: Seconds to let the DOM settle after each click
            custom_selectors: Extra selectors, tried after the built-in ones
            selectors: Base selector list, most specific first
        """
        if max_iterations < 1:
            raise InvalidInputError(f"max_iterations must be at least 1, got {max_iterations}")
        if click_delay < 0:
            raise InvalidInputError(f"click_delay must not be negative, got {click_delay}")

        self.max_iterations = max_iterations
        self.click_delay = click_delay
        combined = [*selectors, *(custom_selectors or ())]
        self.selectors: tuple[str, ...] = tuple(dict.fromkeys(s for s in combined if s.strip()))

    async def expand(
        self,
        session: InteractiveSession,
        initial_links: Optional[Iterable[LinkRecord]] = None,
    ) -> ExpansionResult:
        """
        Run the expansion loop against a live session.

        Args:
            session: Session already navigated to the target page
            initial_links: Links known before expansion (merged first)

        Returns:
            ExpansionResult with all links discovered during the run
        """
        state = ExpansionState()
        if initial_links is not None:
            state.link_set.merge(initial_links)

        exhausted = False
        while state.iteration < self.max_iterations:
            state.iteration += 1
            state.link_set.merge(await session.current_links())

            if await self._expand_once(session, state):
                state.consecutive_empty_iterations = 0
                continue

            state.consecutive_empty_iterations += 1
            if state.consecutive_empty_iterations >= MAX_CONSECUTIVE_EMPTY:
                exhausted = True
                break

        logger.debug(
            f"Expansion finished after {state.iteration} iterations: "
            f"{state.interaction_count} clicks, {len(state.link_set)} links"
        )
        return ExpansionResult(
            links=state.link_set.links(),
            interaction_count=state.interaction_count,
            iterations=state.iteration,
            clicked_element_ids=tuple(state.clicked_element_ids),
            exhausted=exhausted,
        )

    async def _expand_once(self, session: InteractiveSession, state: ExpansionState) -> bool:
        """Click at most one element. Returns True if a click happened."""
        for selector in self.selectors:
            try:
                elements = await session.query_all(selector)
            except Exception as e:
                logger.debug(f"Selector {selector!r} failed: {e}")
                continue

            for element in elements:
                if await self._try_click(session, state, selector, element):
                    return True
        return False

    async def _try_click(
        self,
        session: InteractiveSession,
        state: ExpansionState,
        selector: str,
        element: Any,
    ) -> bool:
        try:
            path = await session.structural_path(element)
        except Exception as e:
            logger.debug(f"Could not fingerprint element for {selector!r}: {e}")
            return False

        identity = f"{selector}::{path}"
        if state.already_clicked(identity, path) or identity in state.failed_element_ids:
            return False

        try:
            visible = await session.is_visible(element)
        except Exception as e:
            logger.debug(f"Visibility check failed for {identity}: {e}")
            return False
        if not visible:
            return False

        try:
            await session.click(element)
        except Exception as e:
            state.failed_element_ids.add(identity)
            logger.debug(f"Click failed for {identity}: {e}")
            return False

        state.record_click(identity, path)
        logger.debug(f"Clicked {identity}")

        if self.click_delay > 0:
            await asyncio.sleep(self.click_delay)
        state.link_set.merge(await session.current_links())
        return True
